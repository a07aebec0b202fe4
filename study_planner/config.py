from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from typing import Literal

# Get the project root directory (parent of study_planner folder)
PROJECT_ROOT = Path(__file__).parent.parent

class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""
    database_url: str = "sqlite:///./study_planner.db"
    log_level: str = "INFO"

    # "any": one task today blocks derivation; "per_slot": one derived task per slot per day
    task_guard: Literal["any", "per_slot"] = "any"

    # Validate a whole drag-and-drop batch before applying any of it
    bulk_reschedule_atomic: bool = False

    default_subject_color: str = "#3B82F6"
    default_page_size: int = 100
    max_page_size: int = 100

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_prefix="STUDY_PLANNER_",
        frozen=True,
        extra="ignore",
    )

settings = Settings()
