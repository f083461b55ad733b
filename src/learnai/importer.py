"""Read local documents into course source material."""
import json
import logging
from pathlib import Path

from learnai.models import CourseSource

logger = logging.getLogger(__name__)

# Large documents are cut so the prompt stays within the model's context.
MAX_SOURCE_CHARS = 20000


def read_file_content(file_path: str) -> str:
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix in (".txt", ".md"):
        return path.read_text()
    elif suffix == ".json":
        data = json.loads(path.read_text())
        return json.dumps(data, indent=2)
    elif suffix in (".yaml", ".yml"):
        import yaml
        data = yaml.safe_load(path.read_text())
        return yaml.safe_dump(data, sort_keys=False)
    elif suffix == ".pdf":
        from PyPDF2 import PdfReader
        reader = PdfReader(file_path)
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    elif suffix == ".docx":
        from docx import Document
        doc = Document(file_path)
        return "\n".join(p.text for p in doc.paragraphs)
    elif suffix in (".html", ".htm"):
        from bs4 import BeautifulSoup
        html = path.read_text()
        return BeautifulSoup(html, "html.parser").get_text()
    else:
        # Try reading as plain text
        return path.read_text()


def source_type_for(file_path: str) -> str:
    """Documents become "pdf" sources (extracted text), everything else a syllabus."""
    return "pdf" if Path(file_path).suffix.lower() in (".pdf", ".docx", ".html", ".htm") else "syllabus"


def read_source_file(file_path: str) -> CourseSource:
    """Build a CourseSource from a local file, trimming overly long text."""
    content = read_file_content(file_path).strip()
    if not content:
        raise ValueError(f"{Path(file_path).name} has no readable text")
    if len(content) > MAX_SOURCE_CHARS:
        logger.info("Truncating %s from %d to %d characters", file_path, len(content), MAX_SOURCE_CHARS)
        content = content[:MAX_SOURCE_CHARS]
    return CourseSource(type=source_type_for(file_path), content=content, filename=Path(file_path).name)


def url_source(url: str) -> CourseSource:
    return CourseSource(type="url", content=url.strip())
