"""Runtime settings read from the environment."""
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DB_PATH = str(Path.home() / ".learnai" / "learnai.db")
DEFAULT_OLLAMA_HOST = "http://127.0.0.1:11434"
DEFAULT_OLLAMA_MODEL = "mistral"


@dataclass(frozen=True)
class Settings:
    db_path: str = DEFAULT_DB_PATH
    ollama_host: str = DEFAULT_OLLAMA_HOST
    ollama_model: str = DEFAULT_OLLAMA_MODEL
    temperature: float = 0.2
    request_timeout: float | None = None
    log_level: str = "WARNING"


def _optional_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    return float(value)


def get_settings() -> Settings:
    """Build settings from LEARNAI_* / OLLAMA_* variables, falling back to defaults."""
    return Settings(
        db_path=os.getenv("LEARNAI_DB_PATH", DEFAULT_DB_PATH),
        ollama_host=os.getenv("OLLAMA_HOST", DEFAULT_OLLAMA_HOST).rstrip("/"),
        ollama_model=os.getenv("OLLAMA_MODEL", DEFAULT_OLLAMA_MODEL),
        temperature=float(os.getenv("LEARNAI_TEMPERATURE", "0.2")),
        request_timeout=_optional_float(os.getenv("LEARNAI_REQUEST_TIMEOUT")),
        log_level=os.getenv("LEARNAI_LOG_LEVEL", "WARNING").upper(),
    )
