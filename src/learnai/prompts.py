"""Prompt templates for every generation request."""

JSON_ONLY = "Return JSON ONLY. No prose, no markdown fences."

QUIZ_ITEM_SHAPE = '{"q": string, "options": string[2..4], "answer": integer (0-based index), "explanation": string}'

CONTENT_BLOCK_SHAPE = """{
  "type": "text" | "code" | "quiz" | "diagram" | "interactiveModel" | "hyperparameterSimulator" | "triageChallenge",
  "text": string,            // only for "text", Markdown
  "code": string,            // only for "code"
  "quiz": QUIZ,              // only for "quiz"
  "diagram": string,         // only for "diagram", valid Mermaid.js syntax
  "interactiveModel": {"title", "description", "layers": [{"type": "input"|"hidden"|"output", "neurons", "activation"}], "sampleInput": number[], "expectedOutput": number[]},
  "hyperparameterSimulator": {"title", "description", "parameters": [{"name", "options": [{"label", "description"}]}], "outcomes": [{"combination": "0-1", "result": {"trainingLoss": number[], "validationLoss": number[], "description"}}]},
  "triageChallenge": {"scenario", "evidence": Mermaid string, "options": [{"title", "description"}], "correctOptionIndex", "explanation"}
}""".replace("QUIZ", QUIZ_ITEM_SHAPE)

SUBTOPIC_SHAPE = """{
  "type": "article",
  "title": string,
  "data": {"objective": string, "contentBlocks": BLOCK[]}
}""".replace("BLOCK", "ContentBlock")

COURSE_PROMPT = """
You are a world-class technical writer and curriculum designer. Generate a complete,
personalized learning path about "{topic}" as a single JSON object.

USER PROFILE & GOALS:
- Knowledge level: {level}
- Primary goal: {goal}
- Learning style: {style}
{tech_line}{theory_line}
{source_block}
STRUCTURE:
{{
  "title": string,
  "description": string,        // one-sentence tagline
  "about": string,              // detailed paragraph
  "category": string,           // e.g. "Web Development", "Data Science", "AI/ML"
  "technologies": string[],
  "learningOutcomes": string[],
  "skills": string[],
  "overview": {{"duration": string, "totalTopics": integer, "totalSubtopics": integer, "keyFeatures": string[]}},
  "topics": [{{"title": string, "subtopics": Subtopic[]}}]
}}
Subtopic = {subtopic_shape}
ContentBlock = {block_shape}

RULES:
- 3-5 topics, each with 3-5 subtopics of type "article".
- Each article has 2-5 content blocks: clear Markdown text, commented code, Mermaid diagrams, single-question quizzes.
- For a "{style}" learning style add interactiveModel, hyperparameterSimulator or triageChallenge blocks where they fit.
- Fill "overview" with accurate totals for the curriculum you produce.
- {json_only}
"""

SOURCE_PROMPTS = {
    "syllabus": "COURSE SOURCE: Base the course on the following syllabus:\n```\n{content}\n```\n",
    "url": "COURSE SOURCE: Base the course on the content from this URL: {content}\n",
    "pdf": "COURSE SOURCE: Base the course on the following text extracted from a document:\n```\n{content}\n```\n",
}

LEARNING_PLAN_PROMPT = """
You are an expert curriculum designer. Break the topic "{topic}" into a day-by-day learning plan.
{duration_line}
The plan must progress from fundamentals to advanced concepts. For each day give a focused
sub-topic title and a one-sentence objective, and give the whole plan a concise title.

Return {{"planTitle": string, "optimalDuration": integer, "dailyBreakdown": [{{"day": integer, "title": string, "objective": string}}]}}
with one entry per day. {json_only}
"""

BLOG_POST_PROMPT = """
You are an expert technical writer for a high-quality tech blog. Write a complete blog post on "{topic}".
- title: catchy and SEO-friendly
- subtitle: one sentence summarizing the value of the article
- blogPost: the whole article as Markdown, starting at the first "##" section (not the title),
  with headings, lists and code blocks where useful
- relatedTopics: 3-5 distinct follow-up topic ideas

Return {{"title": string, "subtitle": string, "blogPost": string, "relatedTopics": string[]}}. {json_only}
"""

ARTICLE_IDEAS_PROMPT = """
Based on the course title "{course_title}", list 3-5 distinct, engaging blog post ideas for someone
who just finished the course. Return a JSON array of strings. {json_only}
"""

SYLLABUS_TOPICS_PROMPT = """
You are an expert content strategist. Break the following syllabus into 5-10 specific,
compelling blog post titles that together cover its main points.
```
{syllabus}
```
Return a JSON array of strings. {json_only}
"""

STORY_PROMPT = (
    'Create a short, engaging story for a learner about "{topic}", written as a short script with '
    "character names in bold followed by their dialogue and mannerisms in parentheses."
)

ANALOGY_PROMPT = (
    'Give a simple, relatable analogy for the technical concept "{topic}" that helps a beginner grasp '
    "the core idea. Return only the analogy."
)

FLASHCARDS_PROMPT = """
Generate 5-10 concise flashcards for "{topic}".
Return a JSON array of {{"question": string, "answer": string}}. {json_only}
"""

PRACTICE_SESSION_PROMPT = """
Create a practice session for "{topic}" with 2-3 in-depth concepts (title, description, codeExample)
and a 3-5 question multiple-choice quiz with explanations.
Return {{"topic": string, "concepts": [{{"title", "description", "codeExample"}}], "quiz": [{quiz_shape}]}}. {json_only}
"""

PROJECT_PROMPT = """
You are a senior software engineer designing a guided project.
Course: {course_title}
Subtopic: {subtopic_title}
Objective: {objective}

Produce a hands-on project tied to the objective with 3-5 steps. Each step has a title, a detailed
description, a starting code stub and a concrete challenge.
Return {{"title": string, "description": string, "steps": [{{"title", "description", "codeStub", "challenge"}}]}}. {json_only}
"""

FOLLOW_UP_PROMPT = """
You are an expert curriculum designer. A learner wants to go further on a subtopic.
Course: {course_title}
Topic: {topic_title}
Current subtopic: {subtopic_title}
Learner request: "{instruction}"

Generate 2-3 follow-up subtopics that extend the current one. Each is of type "article" with a title,
an objective and concise "text" or "code" content blocks.
Return a JSON array of Subtopic = {subtopic_shape}
ContentBlock = {block_shape}
{json_only}
"""

REMEDIAL_PROMPT = """
A student is struggling with the subtopic "{subtopic_title}" (objective: {objective}).
Write one simplified remedial "article" subtopic: an approachable title such as
"Understanding X: A Simpler Look", a simpler objective, a "text" block built on a plain analogy
and a "code" block with a minimal commented example.
Return a single Subtopic = {subtopic_shape}
ContentBlock = {block_shape}
{json_only}
"""

SOCRATIC_QUIZ_PROMPT = """
Based on the content below, write a 3-question multiple-choice quiz testing the key concepts.
Each explanation should guide the learner Socratically toward the answer rather than just stating it.
---
{content}
---
Return a JSON array of {quiz_shape}. {json_only}
"""

UNDERSTANDING_CHECK_PROMPT = """
Using only the key concepts of the lesson below, write exactly 2 direct multiple-choice questions
with a clear explanation for each correct answer.
---
{content}
---
Return a JSON array of {quiz_shape}. {json_only}
"""

ASSESSMENT_QUIZ_PROMPT = """
Generate a {count}-question quiz for a learner with "{difficulty}" knowledge of "{topic}".
Each question has 4 options and an explanation. Return a JSON array of {quiz_shape}. {json_only}
"""

RECOMMENDATIONS_PROMPT = """
Based on a learner's test history for "{topic}", recommend 3 specific sub-topics to study next,
each with a short reason tied to their performance. Focus on weak scores at harder difficulties.
Test history:
{history}
Return a JSON array of {{"topic": string, "reason": string}}. {json_only}
"""

RELATED_TOPICS_PROMPT = """
A learner just completed a course on "{course_title}". Recommend 3 logical next topics, each with a
one-sentence reason. Return a JSON array of {{"topic": string, "reason": string}}. {json_only}
"""

DAILY_QUEST_PROMPT = """
You are a motivational learning coach on a gamified platform. Create one small, achievable
"Daily Quest" that encourages a bit of learning (e.g. complete 2 lessons, start a new topic,
take a skill assessment). The XP reward is between 150 and 300.
Return {{"title": string, "description": string, "xp": integer}}. {json_only}
"""

DEFINE_TERM_PROMPT = 'Give a concise, clear, beginner-friendly definition of the technical term "{term}". Return only the definition.'

PROJECT_REVIEW_PROMPT = """
You are a friendly AI pair programmer reviewing a student's code for a project step.
Start with what they did well, then point out issues with guiding questions instead of solutions.
Keep it short and in Markdown.

Step instructions:
---
{instructions}
---
Student code:
```
{code}
```
"""

INTERVIEW_QUESTIONS_PROMPT = """
Act as a senior technical interviewer. Topic: "{topic}". Difficulty: "{difficulty}".
Write {count} new interview questions, each with a concise but thorough answer.
Do NOT repeat or paraphrase any of these already-asked questions:
{existing}
Return a JSON array of {{"question": string, "answer": string}}. {json_only}
"""

ELABORATE_PROMPT = (
    'A student is preparing for an interview. Question: "{question}". Current answer: "{answer}". '
    "Elaborate in more depth using simple terms, with an example or code snippet if it helps. "
    "Return only the elaborated answer."
)

CODE_EXPLANATION_PROMPT = """
Explain the coding problem from the following {kind}. Give a step-by-step breakdown, name the core
concepts and suggest an optimal approach. Format the answer in Markdown with "###" section titles.

{content}
"""

CHAT_SYSTEM_PROMPT = "You are a helpful and knowledgeable AI assistant for a learning platform. {context}"
