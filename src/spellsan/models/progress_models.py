"""Models for progress-related data."""
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple


class PracticeMode(str, Enum):
    """Ways of restricting the corpus for a practice session."""
    RANDOM = "random"
    ALPHABET = "alphabet"


class WordCategory(str, Enum):
    """Category of a word derived from progress."""
    NEW = "new"
    LEARNED = "learned"
    DIFFICULT = "difficult"


def local_now() -> datetime:
    """Current time as a timezone-aware datetime in the device's local zone."""
    return datetime.now().astimezone()


def local_date(timestamp: datetime) -> date:
    """Calendar day of a timestamp on the device's local clock."""
    if timestamp.tzinfo is None:
        return timestamp.date()
    return timestamp.astimezone().date()


def percentage(part: int, whole: int) -> int:
    """Whole percentage of part in whole, rounded half up and bounded to 0..100."""
    if whole <= 0:
        return 0
    value = math.floor(100 * part / whole + 0.5)
    return max(0, min(100, value))


def format_timestamp(value: Optional[datetime]) -> str:
    return value.isoformat() if value is not None else ""


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise TypeError(f"Expected ISO timestamp string, got {type(value).__name__}")
    return datetime.fromisoformat(value)


def _counter(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number")
    if not math.isfinite(value):
        raise ValueError(f"{name} must be a finite number")
    return max(0, int(value))


def _words(value: Any, name: str) -> List[str]:
    if not isinstance(value, list):
        raise TypeError(f"{name} must be a list of words")
    return [word for word in value if isinstance(word, str)]


@dataclass(frozen=True)
class SessionRecord:
    """One completed (or checkpointed) practice session."""
    date: datetime
    mode: PracticeMode
    words_attempted: int
    correct_answers: int
    accuracy: int
    duration: int  # whole minutes
    words_learned: Tuple[str, ...] = ()
    difficult_words_encountered: Tuple[str, ...] = ()
    alphabet: Optional[str] = None
    session_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "date": format_timestamp(self.date),
            "mode": self.mode.value,
            "wordsAttempted": self.words_attempted,
            "correctAnswers": self.correct_answers,
            "accuracy": self.accuracy,
            "duration": self.duration,
            "wordsLearned": list(self.words_learned),
            "difficultWordsEncountered": list(self.difficult_words_encountered),
        }
        if self.alphabet is not None:
            data["alphabet"] = self.alphabet
        if self.session_id is not None:
            data["sessionId"] = self.session_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionRecord":
        if not isinstance(data, dict):
            raise TypeError("Session record must be an object")
        timestamp = parse_timestamp(data.get("date"))
        if timestamp is None:
            raise ValueError("Session record is missing its date")
        mode = PracticeMode(data.get("mode", PracticeMode.RANDOM.value))
        attempted = _counter(data.get("wordsAttempted", 0), "wordsAttempted")
        correct = min(_counter(data.get("correctAnswers", 0), "correctAnswers"), attempted)
        return cls(
            date=timestamp,
            mode=mode,
            words_attempted=attempted,
            correct_answers=correct,
            accuracy=percentage(correct, attempted),
            duration=max(1, _counter(data.get("duration", 1), "duration")),
            words_learned=tuple(_words(data.get("wordsLearned", []), "wordsLearned")),
            difficult_words_encountered=tuple(
                _words(data.get("difficultWordsEncountered", []), "difficultWordsEncountered")
            ),
            alphabet=data.get("alphabet") if mode == PracticeMode.ALPHABET else None,
            session_id=data.get("sessionId"),
        )


@dataclass
class SessionData:
    """Results of a practice session handed over for recording."""
    mode: PracticeMode
    words_attempted: int
    correct_answers: int
    start_time: datetime
    end_time: datetime
    words_correct: List[str] = field(default_factory=list)
    words_incorrect: List[str] = field(default_factory=list)
    alphabet: Optional[str] = None
    session_id: Optional[str] = None


@dataclass
class ProgressRecord:
    """All progress state for one user/device."""
    words_learned: Set[str] = field(default_factory=set)
    difficult_words: Set[str] = field(default_factory=set)
    session_history: List[SessionRecord] = field(default_factory=list)
    total_words_attempted: int = 0
    total_correct_answers: int = 0
    average_accuracy: int = 0
    total_practice_sessions: int = 0
    streak: int = 0
    streak_start_date: Optional[datetime] = None
    practice_today: int = 0
    last_practice_date: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wordsLearned": sorted(self.words_learned),
            "difficultWords": sorted(self.difficult_words),
            "sessionHistory": [record.to_dict() for record in self.session_history],
            "totalWordsAttempted": self.total_words_attempted,
            "totalCorrectAnswers": self.total_correct_answers,
            "averageAccuracy": self.average_accuracy,
            "totalPracticeSessions": self.total_practice_sessions,
            "streak": self.streak,
            "streakStartDate": format_timestamp(self.streak_start_date),
            "practiceToday": self.practice_today,
            "lastPracticeDate": format_timestamp(self.last_practice_date),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProgressRecord":
        """Build a record from a stored document, defaulting missing fields.

        Unknown fields are ignored. A word listed as both learned and difficult
        is kept as difficult only.
        """
        if not isinstance(data, dict):
            raise TypeError("Progress document must be an object")
        history = data.get("sessionHistory", [])
        if not isinstance(history, list):
            raise TypeError("sessionHistory must be a list")

        difficult = set(_words(data.get("difficultWords", []), "difficultWords"))
        learned = set(_words(data.get("wordsLearned", []), "wordsLearned")) - difficult
        attempted = _counter(data.get("totalWordsAttempted", 0), "totalWordsAttempted")
        correct = min(_counter(data.get("totalCorrectAnswers", 0), "totalCorrectAnswers"), attempted)
        sessions = [SessionRecord.from_dict(item) for item in history]

        return cls(
            words_learned=learned,
            difficult_words=difficult,
            session_history=sessions,
            total_words_attempted=attempted,
            total_correct_answers=correct,
            average_accuracy=percentage(correct, attempted),
            total_practice_sessions=max(
                _counter(data.get("totalPracticeSessions", 0), "totalPracticeSessions"),
                len(sessions),
            ),
            streak=_counter(data.get("streak", 0), "streak"),
            streak_start_date=parse_timestamp(data.get("streakStartDate")),
            practice_today=_counter(data.get("practiceToday", 0), "practiceToday"),
            last_practice_date=parse_timestamp(data.get("lastPracticeDate")),
        )


@dataclass(frozen=True)
class LetterProgress:
    """Learned share of the corpus words starting with one letter."""
    letter: str
    total_words: int
    learned_words: int
    progress: int


@dataclass(frozen=True)
class Achievement:
    """Dashboard milestone with completion in the 0..1 range."""
    key: str
    title: str
    description: str
    achieved: bool
    progress: float


def sessions_on(history: Iterable[SessionRecord], day: date) -> int:
    """Number of session records dated on the given local calendar day."""
    return sum(1 for record in history if local_date(record.date) == day)
