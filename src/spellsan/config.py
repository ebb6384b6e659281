"""Configuration settings for the progress engine."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Define data directories from environment variables
DATA_DIR = Path(os.getenv("DATA_DIR", "./data"))
CORPUS_FILE = Path(os.getenv("CORPUS_FILE", str(DATA_DIR / "words.txt")))

STORAGE_VERSION = "1.0"


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)


@dataclass
class StorageSettings:
    """Progress storage settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///spellsan.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"
    storage_key: str = os.getenv("PROGRESS_STORAGE_KEY", "spellsan-progress")
    version: str = STORAGE_VERSION


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class PracticeSettings:
    """Word selection and practice session settings."""
    difficult_ratio: float = float(os.getenv("DIFFICULT_RATIO", "0.8"))
    min_practice_size: int = int(os.getenv("MIN_PRACTICE_SIZE", "20"))
    corpus_ratio: float = float(os.getenv("CORPUS_RATIO", "0.3"))
    reinforcement_threshold: int = int(os.getenv("REINFORCEMENT_THRESHOLD", "15"))
    reinforcement_cap: int = int(os.getenv("REINFORCEMENT_CAP", "5"))
    reinforcement_ratio: float = float(os.getenv("REINFORCEMENT_RATIO", "0.1"))
    fallback_size: int = int(os.getenv("FALLBACK_SIZE", "20"))
    autosave_interval: float = float(os.getenv("AUTOSAVE_INTERVAL", "10"))
    word_time_limit: int = int(os.getenv("WORD_TIME_LIMIT", "45"))
    corpus_file: Path = CORPUS_FILE


@dataclass
class MonitoringSettings:
    """Prometheus metrics settings."""
    enabled: bool = os.getenv("MONITORING_ENABLED", "false").lower() == "true"
    port: int = int(os.getenv("MONITORING_PORT", "9090"))


def get_storage_settings() -> StorageSettings:
    """Get storage settings."""
    return StorageSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_practice_settings() -> PracticeSettings:
    """Get practice settings."""
    return PracticeSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    storage: StorageSettings = field(default_factory=get_storage_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    practice: PracticeSettings = field(default_factory=get_practice_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if not self.storage.storage_key:
            raise ValueError("PROGRESS_STORAGE_KEY is required")

        practice = self.practice
        for name in ("difficult_ratio", "corpus_ratio", "reinforcement_ratio"):
            value = getattr(practice, name)
            if value < 0 or value > 1:
                raise ValueError(f"{name.upper()} must be between 0 and 1")

        for name in ("min_practice_size", "reinforcement_threshold", "fallback_size"):
            if getattr(practice, name) < 1:
                raise ValueError(f"{name.upper()} must be positive")

        if practice.reinforcement_cap < 0:
            raise ValueError("REINFORCEMENT_CAP cannot be negative")

        if practice.autosave_interval <= 0:
            raise ValueError("AUTOSAVE_INTERVAL must be positive")

        if practice.word_time_limit < 1:
            raise ValueError("WORD_TIME_LIMIT must be positive")


# Create global settings instance
settings = Settings()
settings.validate()
