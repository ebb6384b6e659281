"""Practice session runner with periodic progress checkpoints."""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from spellsan.config import settings
from spellsan.models.progress_models import PracticeMode, ProgressRecord, SessionData, local_now
from spellsan.services.progress_service import ProgressService

logger = logging.getLogger(__name__)


class PracticeSession:
    """One practice session drawing words without replacement from a practice set."""

    def __init__(
        self,
        service: ProgressService,
        words: Sequence[str],
        mode: PracticeMode = PracticeMode.RANDOM,
        alphabet: Optional[str] = None,
        autosave_interval: Optional[float] = None,
        word_time_limit: Optional[int] = None,
    ):
        """Initialize the session with the words chosen for it."""
        self.service = service
        self.mode = PracticeMode(mode)
        self.alphabet = alphabet
        self.autosave_interval = (
            settings.practice.autosave_interval if autosave_interval is None else autosave_interval
        )
        if self.autosave_interval <= 0:
            raise ValueError("autosave_interval must be positive")
        self.word_time_limit = settings.practice.word_time_limit if word_time_limit is None else word_time_limit
        if self.word_time_limit < 1:
            raise ValueError("word_time_limit must be positive")

        self._remaining: List[str] = list(words)
        self.session_id: Optional[str] = None
        self.start_time: Optional[datetime] = None
        self.current_word: Optional[str] = None
        self.deadline: Optional[datetime] = None
        self.words_correct: List[str] = []
        self.words_incorrect: List[str] = []
        self.attempted = 0
        self.correct = 0
        self.running = False
        self._autosave_task: Optional[asyncio.Task] = None

    @property
    def remaining(self) -> int:
        """Number of words not drawn yet."""
        return len(self._remaining)

    async def start(self) -> Optional[str]:
        """Start the session and return the first word."""
        if self.running:
            return self.current_word

        self.session_id = self.service.start_session(self.mode, self.alphabet)
        self.start_time = local_now()
        self.running = True
        self._autosave_task = asyncio.create_task(self._run_autosave())
        return self.next_word()

    def next_word(self) -> Optional[str]:
        """Draw the next word, or None once the practice set is exhausted."""
        if not self._remaining:
            self.current_word = None
            self.deadline = None
            return None
        self.current_word = self._remaining.pop(0)
        self.deadline = local_now() + timedelta(seconds=self.word_time_limit)
        return self.current_word

    def submit_answer(self, answer: str) -> bool:
        """Check an answer for the current word and record it."""
        if self.current_word is None:
            raise ValueError("No word is waiting for an answer")
        is_correct = answer.strip().lower() == self.current_word.lower()
        self._record(is_correct)
        return is_correct

    def time_up(self) -> None:
        """Count the current word as missed because its time ran out."""
        if self.current_word is None:
            raise ValueError("No word is waiting for an answer")
        self._record(False)

    def _record(self, is_correct: bool) -> None:
        word = self.current_word
        self.attempted += 1
        if is_correct:
            self.correct += 1
            self.words_correct.append(word)
        else:
            self.words_incorrect.append(word)
        self.service.record_answer(word, is_correct, session_id=self.session_id)
        self.current_word = None
        self.deadline = None

    def save(self) -> Optional[ProgressRecord]:
        """Checkpoint the session so far; nothing is written before the first answer."""
        if self.session_id is None or self.attempted == 0:
            return None
        return self.service.record_session(
            SessionData(
                mode=self.mode,
                alphabet=self.alphabet,
                words_attempted=self.attempted,
                correct_answers=self.correct,
                start_time=self.start_time,
                end_time=local_now(),
                words_correct=list(self.words_correct),
                words_incorrect=list(self.words_incorrect),
                session_id=self.session_id,
            )
        )

    async def _run_autosave(self) -> None:
        """Save the session periodically while it is running."""
        while self.running:
            await asyncio.sleep(self.autosave_interval)
            if not self.running:
                break
            self.save()

    async def stop(self) -> Optional[ProgressRecord]:
        """Stop the autosave timer and write the final session record."""
        if not self.running:
            return None

        self.running = False
        if self._autosave_task is not None:
            self._autosave_task.cancel()
            await asyncio.gather(self._autosave_task, return_exceptions=True)
            self._autosave_task = None

        logger.info(
            f"Practice session {self.session_id} finished: {self.correct}/{self.attempted} correct"
        )
        record = self.save()
        self.service.finish_session(self.session_id)
        return record
