from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent
PACKAGE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=BASE_DIR / ".env", env_file_encoding="utf-8")

    # Storage
    DATABASE_URL: str = f"sqlite+aiosqlite:///{BASE_DIR / 'data' / 'activitymind.db'}"
    DATABASE_ECHO: bool = False

    # OpenRouter LLM
    OPENROUTER_API_KEY: str = ""
    OPENROUTER_MODEL: str = "google/gemini-2.0-flash-001"
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 2000
    LLM_TIMEOUT_SECONDS: float = 30.0
    LLM_MAX_ATTEMPTS: int = 1  # brainstorm falls back to heuristics instead of retrying
    LLM_TRACKING_ENABLED: bool = True

    # Recommendations
    DEFAULT_SUGGESTION_COUNT: int = 3

    # Reminders (read by the notification layer, not by the recommendation core)
    REMINDERS_ENABLED: bool = True
    REMINDER_HOUR: int = 9

    # Paths
    SEED_FILE: Path = PACKAGE_DIR / "seeds" / "builtin_activities.yaml"
    LOGS_DIR: Path = BASE_DIR / "data" / "logs"


settings = Settings()
