"""Test configuration."""
import os
from datetime import date, datetime, time, timedelta
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from sqlalchemy.orm import sessionmaker

from spellsan.models.base import create_session_factory
from spellsan.models.models import ProgressSnapshot  # noqa: F401  registers the table
from spellsan.models.progress_models import PracticeMode, SessionRecord, local_now


@pytest.fixture
def session_factory(tmp_path: Path) -> sessionmaker:
    """Create a session factory on a fresh database file for each test."""
    return create_session_factory(f"sqlite:///{tmp_path / 'progress.db'}")


def make_session(day: date, words_attempted: int = 10, correct_answers: int = 8, **kwargs) -> SessionRecord:
    """Build a session record dated at noon of a local calendar day."""
    return SessionRecord(
        date=datetime.combine(day, time(12, 0)).astimezone(),
        mode=kwargs.pop("mode", PracticeMode.RANDOM),
        words_attempted=words_attempted,
        correct_answers=correct_answers,
        accuracy=kwargs.pop("accuracy", round(100 * correct_answers / words_attempted) if words_attempted else 0),
        duration=kwargs.pop("duration", 5),
        **kwargs,
    )


def days_ago(days: int) -> date:
    """Local calendar day the given number of days before today."""
    return local_now().date() - timedelta(days=days)
