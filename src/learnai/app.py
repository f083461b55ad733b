"""Interactive CLI application."""
import logging
from datetime import date
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.tree import Tree

from learnai.config import get_settings
from learnai.dashboard import ACHIEVEMENTS, calculate_streak, course_completion
from learnai.db import init_db
from learnai.errors import BackupImportError, LearnAIError
from learnai.generation import GenerationClient
from learnai.importer import read_source_file, url_source
from learnai.models import KNOWLEDGE_LEVELS, LEARNING_GOALS, LEARNING_STYLES
from learnai.plans import current_plan_day
from learnai.store import ContentStore
from learnai.tasks import DONE, ERROR

console = Console()
logger = logging.getLogger(__name__)

EXIT_WORDS = ("q", "menu")
OPTION_LETTERS = "abcdef"


class SessionExitRequested(Exception):
    """Raised when the user types q or menu inside a sub-flow."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer is not None and answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list[str] | None = None, **kwargs) -> int:
    if choices is not None:
        choices = list(choices) + list(EXIT_WORDS)
    answer = session_prompt(prompt, choices=choices, **kwargs)
    return int(answer)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def show_welcome():
    console.print(Panel(
        "[bold]LearnAI[/bold]\n[dim]Personal learning paths, generated locally[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("new", "Generate a learning path"),
        ("courses", "Your learning paths"),
        ("open", "Study a learning path"),
        ("folders", "Organize folders"),
        ("article", "Write an article"),
        ("articles", "Read your articles"),
        ("projects", "Guided projects"),
        ("plan", "Day-by-day learning plans"),
        ("habits", "Learning habits"),
        ("practice", "Practice quiz"),
        ("chat", "Ask the assistant"),
        ("tasks", "Background tasks"),
        ("profile", "Level, achievements and what's next"),
        ("export", "Back up your data"),
        ("import", "Restore a backup"),
        ("reset", "Erase all learning data"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def pick(items: list, label, title: str):
    """Number the items, ask for one, return it (None when the list is empty)."""
    if not items:
        console.print(f"[yellow]No {title.lower()} yet.[/yellow]")
        return None
    for i, item in enumerate(items, 1):
        console.print(f"  [cyan]{i}[/cyan]) {label(item)}")
    index = session_int_prompt(f"Select {title.lower().rstrip('s')}", choices=[str(i) for i in range(1, len(items) + 1)])
    return items[index - 1]


def pick_folder(store: ContentStore, allow_none: bool = True):
    folders = store.state.folders
    if not folders:
        return None
    console.print("  [cyan]0[/cyan]) No folder")
    for i, folder in enumerate(folders, 1):
        console.print(f"  [cyan]{i}[/cyan]) {folder.name}")
    choices = [str(i) for i in range(0 if allow_none else 1, len(folders) + 1)]
    index = session_int_prompt("Folder", choices=choices, default="0" if allow_none else "1")
    return folders[index - 1].id if index else None


def show_task_result(store: ContentStore) -> None:
    task = store.state.tracker.active
    if task is None:
        return
    if task.status == DONE:
        console.print(f"[green]{task.message}[/green]")
    elif task.status == ERROR:
        console.print(f"[red]{task.message}[/red]")


def show_session(store: ContentStore, kind: str) -> None:
    session = store.state.sessions[kind]
    if session.error:
        console.print(f"[red]{session.error}[/red]")
        return
    result = session.result
    if isinstance(result, str):
        console.print(Panel(result, title=session.title, border_style="cyan"))
    elif isinstance(result, list):
        for item in result:
            if hasattr(item, "question") and hasattr(item, "answer"):
                console.print(Panel(f"{item.question}\n\n[green]{item.answer}[/green]", border_style="cyan"))
            elif hasattr(item, "reason"):
                console.print(f"  [cyan]{item.topic}[/cyan]: {item.reason}")
            else:
                console.print(f"  - {item}")
    elif result is not None:
        console.print(result)


def run_quiz_session(questions: list) -> list[int | None]:
    """Ask every question and return the chosen option indexes."""
    answers = []
    console.print(f"\n[bold]Quiz[/bold] - {len(questions)} questions\n")
    for i, q in enumerate(questions, 1):
        console.print(f"[bold]Q{i}.[/bold] {q.q}\n")
        letters = OPTION_LETTERS[:len(q.options)]
        for letter, option in zip(letters, q.options):
            console.print(f"  [cyan]{letter})[/cyan] {option}")
        answer = session_prompt("\nYour answer", choices=list(letters) + list(EXIT_WORDS))
        chosen = letters.index(answer)
        answers.append(chosen)
        if chosen == q.answer:
            console.print("[green]Correct![/green]")
        else:
            console.print(f"[red]Incorrect.[/red] Answer: [green]{letters[q.answer]}[/green]")
        if q.explanation:
            console.print(f"[dim]{q.explanation}[/dim]")
        console.print()
    return answers


# --- Courses ---

def cmd_new(store: ContentStore):
    console.print("\n[bold]New Learning Path[/bold]")
    topic = session_prompt("Topic")
    level = session_prompt("Knowledge level", choices=list(KNOWLEDGE_LEVELS), default="beginner")
    goal = session_prompt("Goal", choices=list(LEARNING_GOALS), default="curiosity")
    style = session_prompt("Learning style", choices=list(LEARNING_STYLES), default="balanced")
    tech = session_prompt("Specific technologies (optional)", default="")
    include_theory = Confirm.ask("Include a theory section?", default=False)
    source = None
    source_ref = session_prompt("Source file or URL (optional)", default="")
    if source_ref.startswith(("http://", "https://")):
        source = url_source(source_ref)
    elif source_ref:
        if not Path(source_ref).exists():
            console.print(f"[red]File not found: {source_ref}[/red]")
            return
        source = read_source_file(source_ref)
    folder_id = pick_folder(store)
    with console.status("Generating learning path..."):
        course = store.generate_course(topic, level, folder_id, goal, style, source, tech or None, include_theory)
    show_task_result(store)
    if course:
        console.print(f"[green]Created \"{course.title}\" with {len(course.topics)} topics.[/green]")


def course_label(course) -> str:
    stats = course_completion(course)
    return f"{course.title} [dim]({stats['completed']}/{stats['total']}, {stats['percent']}%)[/dim]"


def cmd_courses(store: ContentStore):
    table = Table(title="Learning Paths")
    table.add_column("Folder", style="cyan")
    table.add_column("Title")
    table.add_column("Level")
    table.add_column("Progress", justify="right")
    groups = [(f.name, store.folder_courses(f.id)) for f in store.state.folders]
    groups.append(("Uncategorized", store.uncategorized_courses()))
    for name, courses in groups:
        for course in courses:
            stats = course_completion(course)
            table.add_row(name, course.title, course.knowledge_level, f"{stats['percent']}%")
    console.print(table)


def flat_units(course) -> list[tuple]:
    return [(topic, subtopic) for topic in course.topics for subtopic in topic.subtopics]


def show_course(course) -> None:
    console.print(Panel(
        f"[bold]{course.title}[/bold]\n{course.description}\n[dim]{course.category}[/dim]",
        border_style="blue",
    ))
    table = Table()
    table.add_column("#", justify="right")
    table.add_column("Topic", style="cyan")
    table.add_column("Lesson")
    table.add_column("Done")
    for i, (topic, subtopic) in enumerate(flat_units(course), 1):
        done = "[green]x[/green]" if subtopic.id in course.progress else ""
        title = subtopic.title + (" [magenta](adaptive)[/magenta]" if subtopic.is_adaptive else "")
        table.add_row(str(i), topic.title, title, done)
    console.print(table)


def show_subtopic(subtopic) -> None:
    lines = [f"[bold]{subtopic.title}[/bold]"]
    if subtopic.objective:
        lines.append(f"[dim]{subtopic.objective}[/dim]")
    if subtopic.type == "article":
        for block in subtopic.data.content_blocks:
            if block.type == "text":
                lines.append(block.text or "")
            elif block.type == "code":
                lines.append(f"[green]{block.code}[/green]")
            elif block.type == "diagram":
                lines.append(f"[dim]diagram:[/dim]\n{block.diagram}")
            elif block.type == "quiz" and block.quiz:
                lines.append(f"[yellow]Quiz:[/yellow] {block.quiz.q}")
            else:
                lines.append(f"[dim]({block.type})[/dim]")
    else:
        lines.append(getattr(subtopic.data, "description", ""))
    if subtopic.notes:
        lines.append(f"[cyan]Notes:[/cyan] {subtopic.notes}")
    console.print(Panel("\n\n".join(lines), border_style="cyan"))


COURSE_ACTIONS = (
    "read", "toggle", "note", "expand", "simpler", "project", "story", "analogy", "flashcards",
    "socratic", "check", "practice", "explain", "define", "map", "explore", "ideas", "interview", "move", "delete", "back",
)


def cmd_open(store: ContentStore):
    course = pick(store.state.courses, course_label, "Courses")
    if course is None:
        return
    store.select_course(course.id)
    while True:
        show_course(course)
        action = session_prompt("Action", choices=list(COURSE_ACTIONS), default="back")
        if action == "back":
            return
        if action == "delete":
            if Confirm.ask(f"Delete \"{course.title}\"?", default=False):
                store.delete_course(course.id)
                return
            continue
        if action == "move":
            store.move_course_to_folder(course.id, pick_folder(store))
            continue
        if action == "map":
            tree = Tree(f"[bold]{course.title}[/bold]")
            for topic in store.mind_map(course.id)["children"]:
                branch = tree.add(topic["title"])
                for leaf in topic["children"]:
                    branch.add(("[green]" if leaf["completed"] else "") + leaf["title"])
            console.print(tree)
            continue
        if action == "define":
            with console.status("Looking it up..."):
                store.define_term(session_prompt("Term"))
            show_session(store, "definition")
            continue
        if action == "explore":
            with console.status("Finding related topics..."):
                store.show_related_topics(course.id)
            show_session(store, "explore")
            continue
        if action == "ideas":
            with console.status("Brainstorming article ideas..."):
                store.show_article_ideas(course.id)
            show_session(store, "article_ideas")
            continue
        if action == "interview":
            run_interview_prep(store, course)
            continue

        units = flat_units(course)
        if not units:
            console.print("[yellow]This learning path has no lessons.[/yellow]")
            continue
        index = session_int_prompt("Lesson #", choices=[str(i) for i in range(1, len(units) + 1)])
        topic, subtopic = units[index - 1]
        run_lesson_action(store, course, topic, subtopic, action)


def run_lesson_action(store: ContentStore, course, topic, subtopic, action: str) -> None:
    if action == "read":
        show_subtopic(subtopic)
    elif action == "toggle":
        store.toggle_subtopic_complete(course.id, subtopic.id)
    elif action == "note":
        store.save_subtopic_note(course.id, subtopic.id, session_prompt("Note", default=subtopic.notes or ""))
    elif action == "expand":
        instruction = session_prompt("What would you like to explore further?")
        with console.status("Expanding topic..."):
            store.expand_topic(course.id, topic.id, subtopic.id, instruction)
        show_task_result(store)
    elif action == "simpler":
        with console.status("Writing a simpler explanation..."):
            store.insert_remedial_subtopic(course.id, subtopic.id)
        if store.state.error:
            console.print(f"[red]{store.state.error}[/red]")
    elif action == "project":
        with console.status("Generating project..."):
            store.generate_project(course.id, subtopic.id)
        show_task_result(store)
    elif action in ("story", "analogy", "flashcards"):
        command = {"story": store.show_story, "analogy": store.show_analogy, "flashcards": store.show_flashcards}[action]
        with console.status(f"Generating {action}..."):
            command(subtopic.title)
        show_session(store, action)
    elif action == "socratic":
        with console.status("Writing questions..."):
            session = store.show_socratic_quiz(course.id, subtopic.id)
        if session.error:
            console.print(f"[red]{session.error}[/red]")
        else:
            run_quiz_session(session.result)
    elif action == "check":
        with console.status("Writing questions..."):
            session = store.check_understanding(course.id, subtopic.id)
        if session.error:
            console.print(f"[red]{session.error}[/red]")
            return
        correct, total = store.submit_understanding_check(run_quiz_session(session.result))
        console.print(f"[bold]Score: {correct}/{total}[/bold]")
    elif action == "practice":
        with console.status("Preparing practice..."):
            session = store.start_topic_practice(course.id, subtopic.id)
        if session.error:
            console.print(f"[red]{session.error}[/red]")
            return
        for concept in session.result.concepts:
            console.print(Panel(f"{concept.description}\n\n[green]{concept.code_example}[/green]", title=concept.title))
        run_quiz_session(session.result.quiz)
    elif action == "explain":
        code = [b.code for b in getattr(subtopic.data, "content_blocks", []) if b.type == "code" and b.code]
        content, kind = ("\n\n".join(code), "code") if code else (subtopic.text_content(), "text")
        with console.status("Explaining..."):
            store.explain_code(content, kind)
        show_session(store, "code_explainer")


def run_interview_prep(store: ContentStore, course) -> None:
    store.start_interview_prep(course.id)
    difficulty = session_prompt("Difficulty", choices=list(KNOWLEDGE_LEVELS), default="intermediate")
    count = session_int_prompt("Number of questions", default="5")
    with console.status("Writing interview questions..."):
        question_set = store.generate_interview_questions(course.id, difficulty, count)
    if question_set is None:
        show_session(store, "interview_prep")
        return
    for i, item in enumerate(question_set.questions, 1):
        console.print(Panel(f"{item.answer}", title=f"Q{i}. {item.question}", border_style="cyan"))
    while Confirm.ask("Elaborate on an answer?", default=False):
        index = session_int_prompt("Question #", choices=[str(i) for i in range(1, len(question_set.questions) + 1)])
        with console.status("Elaborating..."):
            elaborated = store.elaborate_answer(course.id, question_set.id, index - 1)
        if elaborated:
            console.print(Panel(elaborated, border_style="green"))


# --- Folders and articles ---

def cmd_folders(store: ContentStore):
    table = Table(title="Folders")
    table.add_column("Name", style="cyan")
    table.add_column("Courses", justify="right")
    table.add_column("Articles", justify="right")
    for folder in store.state.folders:
        table.add_row(folder.name, str(len(folder.course_ids)), str(len(folder.article_ids)))
    console.print(table)
    action = session_prompt("Action", choices=["create", "rename", "delete", "back"], default="back")
    if action == "create":
        store.create_folder(session_prompt("Folder name"))
    elif action == "rename":
        folder = pick(store.state.folders, lambda f: f.name, "Folders")
        if folder:
            store.rename_folder(folder.id, session_prompt("New name", default=folder.name))
    elif action == "delete":
        folder = pick(store.state.folders, lambda f: f.name, "Folders")
        if folder and Confirm.ask(f"Delete \"{folder.name}\"? Items inside will become uncategorized.", default=False):
            store.delete_folder(folder.id)


def cmd_article(store: ContentStore):
    mode = session_prompt("Write from", choices=["topic", "syllabus"], default="topic")
    folder_id = pick_folder(store)
    if mode == "topic":
        topic = session_prompt("Topic")
        with console.status("Writing article..."):
            article = store.generate_article(topic, folder_id)
        show_task_result(store)
        if article:
            console.print(f"[green]Saved \"{article.title}\".[/green]")
            show_session(store, "article_ideas")
        return
    path = session_prompt("Syllabus file")
    if not Path(path).exists():
        console.print(f"[red]File not found: {path}[/red]")
        return
    with console.status("Writing articles..."):
        created = store.bulk_generate_articles(read_source_file(path).content, folder_id)
    show_task_result(store)
    console.print(f"[green]{len(created)} article(s) written.[/green]")


def cmd_articles(store: ContentStore):
    article = pick(store.state.articles, lambda a: a.title, "Articles")
    if article is None:
        return
    store.select_article(article.id)
    console.print(Panel(f"[dim]{article.subtitle}[/dim]\n\n{article.blog_post}", title=article.title))
    action = session_prompt("Action", choices=["tutor", "move", "delete", "back"], default="back")
    if action == "tutor":
        store.open_article_tutor(article.id)
        console.print(f"[cyan]{store.state.sessions['article_tutor'].result[0].content}[/cyan]")
        while True:
            message = session_prompt("[bold]You[/bold]")
            with console.status("Thinking..."):
                reply = store.send_article_tutor_message(message)
            console.print(f"[cyan]{reply}[/cyan]")
    elif action == "move":
        store.move_article_to_folder(article.id, pick_folder(store))
    elif action == "delete" and Confirm.ask(f"Delete \"{article.title}\"?", default=False):
        store.delete_article(article.id)


# --- Projects ---

def cmd_projects(store: ContentStore):
    project = pick(store.state.projects, lambda p: p.title, "Projects")
    if project is None:
        return
    store.select_project(project.id)
    while True:
        table = Table(title=project.title)
        table.add_column("#", justify="right")
        table.add_column("Step")
        table.add_column("Done")
        for i, step in enumerate(project.steps, 1):
            table.add_row(str(i), step.title, "[green]x[/green]" if step.id in project.progress else "")
        console.print(table)
        action = session_prompt("Action", choices=["read", "toggle", "review", "delete", "back"], default="back")
        if action == "back":
            return
        if action == "delete":
            if Confirm.ask(f"Delete \"{project.title}\"?", default=False):
                store.delete_project(project.id)
                return
            continue
        index = session_int_prompt("Step #", choices=[str(i) for i in range(1, len(project.steps) + 1)])
        step = project.steps[index - 1]
        if action == "read":
            console.print(Panel(
                f"{step.description}\n\n[green]{step.code_stub}[/green]\n\n[yellow]Challenge:[/yellow] {step.challenge}",
                title=step.title,
            ))
        elif action == "toggle":
            store.toggle_project_step_complete(project.id, step.id)
        elif action == "review":
            code_path = session_prompt("Path to your code")
            if not Path(code_path).exists():
                console.print(f"[red]File not found: {code_path}[/red]")
                continue
            with console.status("Reviewing..."):
                store.review_project_step(project.id, step.id, Path(code_path).read_text())
            show_session(store, "project_tutor")


# --- Plans and habits ---

def cmd_plan(store: ContentStore):
    plans = store.state.learning_plans
    for plan in plans:
        done = sum(1 for t in plan.daily_tasks if t.is_completed)
        console.print(f"  [cyan]{plan.title}[/cyan] ({plan.status}) - day {current_plan_day(plan)} of "
                      f"{plan.duration}, {done}/{len(plan.daily_tasks)} done")
    action = session_prompt("Action", choices=["create", "view", "delete", "back"], default="back")
    if action == "create":
        topic = session_prompt("What do you want to learn?")
        days = session_prompt("Days (blank for optimal)", default="")
        with console.status("Generating learning plan..."):
            store.create_learning_plan(topic, int(days) if days else None)
        show_task_result(store)
    elif action == "delete":
        plan = pick(plans, lambda p: p.title, "Plans")
        if plan and Confirm.ask(f"Delete \"{plan.title}\" and its courses?", default=False):
            store.delete_plan(plan.id)
    elif action == "view":
        plan = pick(plans, lambda p: p.title, "Plans")
        if plan:
            view_plan(store, plan)


def view_plan(store: ContentStore, plan) -> None:
    store.select_plan(plan.id)
    table = Table(title=plan.title)
    table.add_column("Day", justify="right")
    table.add_column("Date")
    table.add_column("Lesson")
    table.add_column("Done")
    for task in plan.daily_tasks:
        course = store.get_course(task.course_id)
        table.add_row(
            str(task.day),
            date.fromtimestamp(task.date / 1000).isoformat(),
            course.title if course else "",
            "[green]x[/green]" if task.is_completed else "",
        )
    console.print(table)
    action = session_prompt("Action", choices=["toggle", "reschedule", "remove", "back"], default="back")
    if action == "back" or not plan.daily_tasks:
        return
    day = session_int_prompt("Day", choices=[str(t.day) for t in plan.daily_tasks])
    task = next(t for t in plan.daily_tasks if t.day == day)
    if action == "toggle":
        store.toggle_plan_task_complete(plan.id, task.id)
    elif action == "reschedule":
        new_date = date.fromisoformat(session_prompt("New date (YYYY-MM-DD)"))
        store.reschedule_plan_task(plan.id, task.id, new_date)
    elif action == "remove" and Confirm.ask(f"Remove day {day}?", default=False):
        store.delete_plan_task(plan.id, task.id)


def cmd_habits(store: ContentStore):
    today = date.today().isoformat()
    table = Table(title="Habits")
    table.add_column("Habit", style="cyan")
    table.add_column("Today")
    table.add_column("Streak", justify="right")
    for habit in store.state.user.habits:
        table.add_row(habit.title, "[green]x[/green]" if habit.history.get(today) else "", str(calculate_streak(habit.history)))
    console.print(table)
    action = session_prompt("Action", choices=["add", "check", "delete", "back"], default="back")
    if action == "add":
        store.add_habit(session_prompt("Habit"))
    elif action == "check":
        habit = pick(store.state.user.habits, lambda h: h.title, "Habits")
        if habit:
            store.toggle_habit(habit.id, today)
    elif action == "delete":
        habit = pick(store.state.user.habits, lambda h: h.title, "Habits")
        if habit and Confirm.ask(f"Delete \"{habit.title}\"?", default=False):
            store.delete_habit(habit.id)


# --- Practice and chat ---

def cmd_practice(store: ContentStore):
    topic = session_prompt("Topic")
    difficulty = session_prompt("Difficulty", choices=list(KNOWLEDGE_LEVELS), default="beginner")
    with console.status("Writing quiz..."):
        session = store.start_practice_quiz(topic, difficulty)
    if session.error:
        console.print(f"[red]{session.error}[/red]")
        return
    result = store.submit_practice_quiz(run_quiz_session(session.result))
    console.print(f"[bold]Score: {round(result.score * 100)}%[/bold]")
    for rec in store.state.sessions["practice_quiz"].context.get("recommendations", []):
        console.print(f"  [cyan]{rec.topic}[/cyan]: {rec.reason}")


def cmd_chat(store: ContentStore):
    console.print("[dim]Type q to leave the chat, clear to start over.[/dim]")
    for msg in store.state.chat_history[-6:]:
        style = "bold" if msg.role == "user" else "cyan"
        console.print(f"[{style}]{msg.content}[/{style}]")
    while True:
        message = session_prompt("[bold]You[/bold]")
        if message.strip().lower() == "clear":
            store.clear_chat_history()
            console.print("[dim]Chat cleared.[/dim]")
            continue
        with console.status("Thinking..."):
            reply = store.send_chat_message(message)
        console.print(f"[cyan]{reply}[/cyan]")


def cmd_tasks(store: ContentStore):
    tasks = store.state.tracker.all()
    table = Table(title="Tasks")
    table.add_column("Task")
    table.add_column("Topic", style="cyan")
    table.add_column("Status")
    table.add_column("Message")
    for task in tasks:
        table.add_row(task.type, task.topic, task.status, task.message)
    console.print(table)
    action = session_prompt("Action", choices=["cancel", "restore", "clear", "back"], default="back")
    if action == "back":
        return
    task = pick(tasks, lambda t: f"{t.type}: {t.topic} ({t.status})", "Tasks")
    if task is None:
        return
    {"cancel": store.cancel_task, "restore": store.restore_task, "clear": store.clear_task}[action](task.id)


# --- Profile and data ---

def cmd_profile(store: ContentStore):
    stats = store.profile_stats()
    console.print(Panel(
        f"Level [bold]{stats['level']}[/bold]  |  XP {stats['xp']}/{stats['required_xp']}\n"
        f"Lessons: [bold]{stats['completed_lessons']}[/bold]  |  Courses: [bold]{stats['courses']}[/bold]  |  "
        f"Projects: [bold]{stats['projects']}[/bold]  |  Best streak: [bold]{stats['best_streak']}[/bold]  |  "
        f"Avg Quiz: [bold]{stats['avg_quiz_score']}%[/bold]",
        title=store.state.user.name, border_style="blue",
    ))
    table = Table(title="Achievements")
    table.add_column("Achievement")
    table.add_column("Description")
    for achievement_id, (title, description) in ACHIEVEMENTS.items():
        unlocked = achievement_id in store.state.user.achievements
        table.add_row(f"[green]{title}[/green]" if unlocked else f"[dim]{title}[/dim]", description)
    console.print(table)

    up_next = store.up_next()
    console.print(f"\n  [yellow]{up_next.title}[/yellow]: {up_next.description}")
    quest = store.load_daily_quest()
    if quest:
        status = "[green]done[/green]" if quest.completed else f"+{quest.xp} XP"
        console.print(f"  [magenta]Daily quest:[/magenta] {quest.title} - {quest.description} ({status})")
        if not quest.completed and Confirm.ask("Mark the daily quest complete?", default=False):
            store.complete_daily_quest()


def cmd_export(store: ContentStore):
    path = session_prompt("Save backup to", default=f"learnai-backup-{date.today().isoformat()}.json")
    Path(path).write_text(store.export_backup())
    console.print(f"[green]Backup written to {path}[/green]")


def cmd_import(store: ContentStore):
    path = session_prompt("Backup file")
    if not Path(path).exists():
        console.print(f"[red]File not found: {path}[/red]")
        return
    if not Confirm.ask("Importing replaces all current learning data. Continue?", default=False):
        return
    try:
        store.import_backup(Path(path).read_text())
    except BackupImportError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print("[green]Data imported successfully![/green]")


def cmd_reset(store: ContentStore):
    if Confirm.ask("Erase ALL learning data? This cannot be undone.", default=False):
        store.reset()
        console.print("[green]All learning data erased.[/green]")


COMMANDS = {
    "new": cmd_new,
    "courses": cmd_courses,
    "open": cmd_open,
    "folders": cmd_folders,
    "article": cmd_article,
    "articles": cmd_articles,
    "projects": cmd_projects,
    "plan": cmd_plan,
    "habits": cmd_habits,
    "practice": cmd_practice,
    "chat": cmd_chat,
    "tasks": cmd_tasks,
    "profile": cmd_profile,
    "export": cmd_export,
    "import": cmd_import,
    "reset": cmd_reset,
}


def main():
    settings = get_settings()
    configure_logging(settings.log_level)
    init_db(settings.db_path)
    store = ContentStore(settings.db_path, GenerationClient(settings))

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="courses").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]Happy learning![/dim]")
            break
        command = COMMANDS.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(store)
        except SessionExitRequested:
            console.print("[dim]Back to menu.[/dim]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except (LearnAIError, OSError, ValueError) as e:
            logger.debug("Command %s failed", choice, exc_info=True)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
