"""Tests for the practice session runner."""
import asyncio

import pytest
from sqlalchemy.orm import sessionmaker

from spellsan.models.progress_models import PracticeMode
from spellsan.services.practice_session import PracticeSession
from spellsan.services.progress_service import ProgressService
from spellsan.services.progress_store import ProgressStore


@pytest.fixture
def progress_service(session_factory: sessionmaker) -> ProgressService:
    """Create a progress service instance."""
    return ProgressService(ProgressStore(session_factory))


@pytest.mark.asyncio
async def test_words_drawn_without_replacement(progress_service: ProgressService) -> None:
    """Test every word is drawn once in order."""
    session = PracticeSession(progress_service, ["cat", "dog"], autosave_interval=60)
    assert await session.start() == "cat"
    session.submit_answer("cat")
    assert session.next_word() == "dog"
    session.submit_answer("dog")
    assert session.next_word() is None
    assert session.remaining == 0
    await session.stop()


@pytest.mark.asyncio
async def test_answers_checked_ignoring_case(progress_service: ProgressService) -> None:
    """Test answers are trimmed and compared case-insensitively."""
    session = PracticeSession(progress_service, ["Necessary", "rhythm"], autosave_interval=60)
    await session.start()
    assert session.submit_answer("  necessary \n") is True
    session.next_word()
    assert session.submit_answer("rythm") is False
    await session.stop()

    record = progress_service.load_progress()
    assert record.words_learned == {"Necessary"}
    assert record.difficult_words == {"rhythm"}


@pytest.mark.asyncio
async def test_time_up_counts_as_incorrect(progress_service: ProgressService) -> None:
    """Test running out of time records a miss."""
    session = PracticeSession(progress_service, ["cat"], autosave_interval=60)
    await session.start()
    assert session.deadline is not None
    session.time_up()
    record = await session.stop()
    assert record.difficult_words == {"cat"}
    assert session.words_incorrect == ["cat"]
    assert session.deadline is None


@pytest.mark.asyncio
async def test_answer_without_word_is_rejected(progress_service: ProgressService) -> None:
    """Test answering twice for one word is a programming error."""
    session = PracticeSession(progress_service, ["cat"], autosave_interval=60)
    await session.start()
    session.submit_answer("cat")
    with pytest.raises(ValueError):
        session.submit_answer("cat")
    await session.stop()


@pytest.mark.asyncio
async def test_stop_without_answers_writes_no_session(progress_service: ProgressService) -> None:
    """Test an abandoned session leaves no session record."""
    session = PracticeSession(progress_service, ["cat"], autosave_interval=60)
    await session.start()
    assert await session.stop() is None
    record = progress_service.load_progress()
    assert record.session_history == []
    assert record.streak == 1


@pytest.mark.asyncio
async def test_autosave_and_final_save_record_one_session(progress_service: ProgressService) -> None:
    """Test periodic checkpoints and the final save do not duplicate the session."""
    session = PracticeSession(
        progress_service, ["cat", "dog", "sun"], PracticeMode.ALPHABET, "c", autosave_interval=0.05
    )
    await session.start()
    session.submit_answer("cat")
    await asyncio.sleep(0.2)

    record = progress_service.load_progress()
    assert len(record.session_history) == 1
    assert record.session_history[0].words_attempted == 1

    session.next_word()
    session.submit_answer("dgo")
    await asyncio.sleep(0.2)
    session.next_word()
    session.submit_answer("sun")
    record = await session.stop()

    assert len(record.session_history) == 1
    assert record.total_practice_sessions == 1
    assert record.session_history[0].session_id == session.session_id
    assert record.session_history[0].words_attempted == 3
    assert record.session_history[0].correct_answers == 2
    assert record.session_history[0].alphabet == "c"
    assert record.total_words_attempted == 3
    assert record.total_correct_answers == 2


@pytest.mark.asyncio
async def test_stop_cancels_autosave(progress_service: ProgressService) -> None:
    """Test no checkpoint fires after the session has stopped."""
    session = PracticeSession(progress_service, ["cat"], autosave_interval=0.05)
    await session.start()
    session.submit_answer("cat")
    await session.stop()
    assert session.running is False
    assert session._autosave_task is None

    progress_service.reset_progress()
    await asyncio.sleep(0.2)
    assert progress_service.load_progress().session_history == []


@pytest.mark.asyncio
async def test_stop_twice(progress_service: ProgressService) -> None:
    """Test a second stop does not record the session again."""
    session = PracticeSession(progress_service, ["cat"], autosave_interval=60)
    await session.start()
    session.submit_answer("cat")
    await session.stop()
    assert await session.stop() is None
    assert len(progress_service.load_progress().session_history) == 1


def test_invalid_autosave_interval(progress_service: ProgressService) -> None:
    """Test a negative autosave interval is rejected."""
    with pytest.raises(ValueError):
        PracticeSession(progress_service, ["cat"], autosave_interval=-1)


@pytest.mark.parametrize("overrides", [
    {"autosave_interval": 0},
    {"word_time_limit": 0},
    {"word_time_limit": -5},
])
def test_zero_or_negative_timings_rejected(progress_service: ProgressService, overrides: dict) -> None:
    """Test an explicit zero is rejected rather than replaced by the default."""
    with pytest.raises(ValueError):
        PracticeSession(progress_service, ["cat"], **overrides)


@pytest.mark.asyncio
async def test_stop_forgets_session_counts(progress_service: ProgressService) -> None:
    """Test a finished session leaves no per-session answer counts behind."""
    session = PracticeSession(progress_service, ["cat", "dog"], autosave_interval=60)
    await session.start()
    session.submit_answer("cat")
    assert session.session_id in progress_service._counted

    await session.stop()
    assert session.session_id not in progress_service._counted
    assert progress_service.load_progress().total_words_attempted == 1


@pytest.mark.asyncio
async def test_stop_without_answers_forgets_session(progress_service: ProgressService) -> None:
    """Test an abandoned session is forgotten too."""
    session = PracticeSession(progress_service, ["cat"], autosave_interval=60)
    await session.start()
    await session.stop()
    assert progress_service._counted == {}
