"""Progress service recording answers and sessions and serving progress views."""
import json
import logging
import math
import threading
import uuid
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from spellsan.models.progress_models import (
    LetterProgress,
    PracticeMode,
    ProgressRecord,
    SessionData,
    SessionRecord,
    local_now,
    percentage,
    sessions_on,
)
from spellsan.monitoring import answers_recorded, session_duration, sessions_recorded, sessions_started
from spellsan.services.classifier import alphabet_progress
from spellsan.services.progress_store import ProgressStore
from spellsan.services.streak import calculate_streak
from spellsan.services.word_selector import WordSelector

logger = logging.getLogger(__name__)


def _unique(words: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(words))


class ProgressService:
    """Service for updating and reading practice progress."""

    def __init__(self, store: ProgressStore, selector: Optional[WordSelector] = None):
        """Initialize the service with a progress store."""
        self.store = store
        self.selector = selector or WordSelector()
        self._lock = threading.RLock()
        # session id -> (attempts, correct) already added to the aggregate totals
        self._counted: Dict[str, Tuple[int, int]] = {}

    def load_progress(self) -> ProgressRecord:
        """Get the current progress record."""
        return self.store.load()

    def start_session(
        self, mode: PracticeMode = PracticeMode.RANDOM, alphabet: Optional[str] = None
    ) -> str:
        """Mark the start of a practice session and return its id."""
        mode = PracticeMode(mode)
        session_id = uuid.uuid4().hex
        with self._lock:
            record = self.store.load()
            now = local_now()
            record.last_practice_date = now
            record.practice_today = sessions_on(record.session_history, now.date())

            # A session in progress counts toward today's streak
            placeholder = SessionRecord(
                date=now, mode=mode, words_attempted=0, correct_answers=0, accuracy=0, duration=0
            )
            new_streak = calculate_streak([*record.session_history, placeholder], now.date())
            if new_streak > record.streak:
                record.streak = new_streak
                if record.streak == 1:
                    record.streak_start_date = now

            self._counted[session_id] = (0, 0)
            self.store.save(record)

        sessions_started.inc()
        logger.info(f"Practice session {session_id} started (mode: {mode.value}, alphabet: {alphabet})")
        return session_id

    def record_answer(self, word: str, is_correct: bool, session_id: Optional[str] = None) -> ProgressRecord:
        """Apply a single answer to the word categories and totals and save immediately."""
        with self._lock:
            record = self.store.load()
            if is_correct:
                record.words_learned.add(word)
                record.difficult_words.discard(word)
            else:
                record.difficult_words.add(word)
                record.words_learned.discard(word)

            record.total_words_attempted += 1
            if is_correct:
                record.total_correct_answers += 1
            record.average_accuracy = percentage(record.total_correct_answers, record.total_words_attempted)

            if session_id is not None:
                attempts, correct = self._counted.get(session_id, (0, 0))
                self._counted[session_id] = (attempts + 1, correct + int(is_correct))

            self.store.save(record)

        answers_recorded.labels(result="correct" if is_correct else "incorrect").inc()
        return record

    def _sanitize(self, data: SessionData) -> Tuple[int, int]:
        attempted = max(0, data.words_attempted)
        correct = max(0, min(data.correct_answers, attempted))
        if (attempted, correct) != (data.words_attempted, data.correct_answers):
            logger.warning(
                f"Clamped invalid session counts: attempted={data.words_attempted}, "
                f"correct={data.correct_answers} -> attempted={attempted}, correct={correct}"
            )
        return attempted, correct

    def record_session(self, data: SessionData) -> ProgressRecord:
        """Record the results of a practice session and save the updated record.

        Without a session id every call appends a new session record. With a
        session id that is already in the history the existing record is
        replaced and the totals only grow by what was not counted before.
        """
        mode = PracticeMode(data.mode)
        attempted, correct = self._sanitize(data)
        elapsed = (data.end_time - data.start_time).total_seconds()
        duration = max(1, math.floor(elapsed / 60))
        words_correct = _unique(data.words_correct)
        words_incorrect = _unique(data.words_incorrect)

        with self._lock:
            record = self.store.load()
            now = local_now()
            session_record = SessionRecord(
                date=now,
                mode=mode,
                alphabet=data.alphabet if mode == PracticeMode.ALPHABET else None,
                words_attempted=attempted,
                correct_answers=correct,
                accuracy=percentage(correct, attempted),
                duration=duration,
                words_learned=tuple(words_correct),
                difficult_words_encountered=tuple(words_incorrect),
                session_id=data.session_id,
            )

            index = self._find_session(record, data.session_id)
            if index is None:
                counted_attempts, counted_correct = self._counted.get(data.session_id, (0, 0))
                record.session_history.append(session_record)
                record.total_practice_sessions += 1
            else:
                previous = record.session_history[index]
                counted_attempts, counted_correct = self._counted.get(data.session_id, (0, 0))
                counted_attempts = max(counted_attempts, previous.words_attempted)
                counted_correct = max(counted_correct, previous.correct_answers)
                # A checkpoint of this session was already counted, replace it where it is
                record.session_history[index] = session_record
                logger.debug(f"Updated session {data.session_id} in place")

            record.total_words_attempted += max(0, attempted - counted_attempts)
            record.total_correct_answers += max(0, correct - counted_correct)
            record.total_correct_answers = min(record.total_correct_answers, record.total_words_attempted)
            record.average_accuracy = percentage(record.total_correct_answers, record.total_words_attempted)
            if data.session_id is not None:
                self._counted[data.session_id] = (
                    max(counted_attempts, attempted),
                    max(counted_correct, correct),
                )

            record.words_learned.update(words_correct)
            record.difficult_words.update(words_incorrect)
            record.difficult_words.difference_update(words_correct)
            record.words_learned.difference_update(record.difficult_words)

            record.last_practice_date = now
            record.practice_today = sessions_on(record.session_history, now.date())
            record.streak = calculate_streak(record.session_history, now.date())
            if record.streak == 1:
                record.streak_start_date = now

            self.store.save(record)

        if index is None:
            sessions_recorded.labels(mode=mode.value).inc()
            session_duration.observe(duration)
        logger.info(
            f"Recorded session {data.session_id or '(untracked)'}: "
            f"{correct}/{attempted} correct in {duration} min"
        )
        return record

    def finish_session(self, session_id: str) -> None:
        """Forget the answer counts kept for a session that will not be saved again."""
        with self._lock:
            self._counted.pop(session_id, None)

    @staticmethod
    def _find_session(record: ProgressRecord, session_id: Optional[str]) -> Optional[int]:
        if session_id is None:
            return None
        for index, session in enumerate(record.session_history):
            if session.session_id == session_id:
                return index
        return None

    def select_practice_set(
        self,
        corpus: Sequence[str],
        mode: PracticeMode = PracticeMode.RANDOM,
        alphabet: Optional[str] = None,
    ) -> List[str]:
        """Choose practice words from the corpus based on current progress."""
        return self.selector.select_practice_set(corpus, self.store.load(), mode, alphabet)

    def alphabet_progress(self, corpus: Sequence[str]) -> List[LetterProgress]:
        """Get per-letter progress for the corpus."""
        return alphabet_progress(self.store.load(), corpus)

    def reset_progress(self) -> bool:
        """Remove all progress."""
        with self._lock:
            self._counted.clear()
            return self.store.reset()

    def export_progress(self) -> str:
        """Serialize the current progress as a portable JSON document."""
        return json.dumps(self.store.load().to_dict(), indent=2)

    def import_progress(self, document: str) -> bool:
        """Replace progress with an exported document; False leaves stored progress untouched."""
        try:
            record = ProgressRecord.from_dict(json.loads(document))
        except (ValueError, TypeError, AttributeError) as e:
            logger.error(f"Error importing progress: {e}")
            return False

        record.practice_today = sessions_on(record.session_history, local_now().date())
        with self._lock:
            return self.store.save(record)
