"""Dashboard achievements and summaries derived from progress."""
from typing import List

from spellsan.models.progress_models import Achievement, ProgressRecord, SessionRecord


def achievements(record: ProgressRecord) -> List[Achievement]:
    """Get the dashboard milestones with their completion."""
    learned = len(record.words_learned)
    best_accuracy = max((session.accuracy for session in record.session_history), default=0)

    def milestone(key: str, title: str, description: str, value: float, goal: float) -> Achievement:
        return Achievement(
            key=key,
            title=title,
            description=description,
            achieved=value >= goal,
            progress=min(value / goal, 1.0),
        )

    return [
        milestone("first_steps", "First Steps", "Complete your first practice session",
                  record.total_practice_sessions, 1),
        milestone("word_explorer", "Word Explorer", "Practice 50 different words", learned, 50),
        milestone("accuracy_master", "Accuracy Master", "Achieve 90% accuracy in a session",
                  best_accuracy, 90),
        milestone("streak_warrior", "Streak Warrior", "Practice for 7 consecutive days", record.streak, 7),
        milestone("word_collector", "Word Collector", "Practice 100 different words", learned, 100),
        milestone("perfectionist", "Perfectionist", "Achieve 100% accuracy in a session",
                  best_accuracy, 100),
    ]


def recent_sessions(record: ProgressRecord, limit: int = 5) -> List[SessionRecord]:
    """Get the most recently recorded sessions, newest first."""
    if limit <= 0:
        return []
    return list(reversed(record.session_history[-limit:]))
