"""Adaptive selection of practice words."""
import logging
import math
import random
from typing import List, Optional, Sequence

from spellsan.config import PracticeSettings, settings
from spellsan.models.progress_models import PracticeMode, ProgressRecord, WordCategory
from spellsan.monitoring import practice_set_size
from spellsan.services.classifier import partition_words

logger = logging.getLogger(__name__)


def filter_corpus(
    corpus: Sequence[str], mode: PracticeMode, alphabet: Optional[str] = None
) -> List[str]:
    """Restrict the corpus to the words a practice mode covers."""
    mode = PracticeMode(mode)
    if mode == PracticeMode.ALPHABET and alphabet:
        if len(alphabet) != 1 or not alphabet.isalpha():
            raise ValueError(f"Alphabet filter must be a single letter, got {alphabet!r}")
        letter = alphabet.upper()
        return [word for word in corpus if word[:1].upper() == letter]
    return list(corpus)


class WordSelector:
    """Builds practice sets biased toward difficult and new words."""

    def __init__(self, practice: Optional[PracticeSettings] = None, rng: Optional[random.Random] = None):
        """Initialize the selector with selection settings and a random source."""
        self.practice = practice or settings.practice
        self.rng = rng or random.Random()

    def _shuffled(self, words: List[str]) -> List[str]:
        shuffled = list(words)
        self.rng.shuffle(shuffled)
        return shuffled

    def _sample(self, words: List[str], count: int) -> List[str]:
        return self.rng.sample(words, min(count, len(words)))

    def select_practice_set(
        self,
        corpus: Sequence[str],
        record: ProgressRecord,
        mode: PracticeMode = PracticeMode.RANDOM,
        alphabet: Optional[str] = None,
    ) -> List[str]:
        """Choose the words for a practice session."""
        base_words = filter_corpus(corpus, mode, alphabet)
        groups = partition_words(record, base_words)
        difficult = groups[WordCategory.DIFFICULT]
        new = groups[WordCategory.NEW]
        learned = groups[WordCategory.LEARNED]
        logger.debug(
            f"Selecting from {len(base_words)} words: "
            f"{len(difficult)} difficult, {len(new)} new, {len(learned)} learned"
        )

        # Everything mastered: review the learned words rather than return nothing
        if not difficult and not new:
            words = self._shuffled(learned if learned else base_words)
            practice_set_size.observe(len(words))
            return words

        practice_words: List[str] = []

        if difficult:
            difficult_count = max(1, math.ceil(len(difficult) * self.practice.difficult_ratio))
            practice_words.extend(self._sample(difficult, difficult_count))

        target_total = max(
            self.practice.min_practice_size,
            math.floor(len(base_words) * self.practice.corpus_ratio),
        )
        remaining_slots = target_total - len(practice_words)
        if new and remaining_slots > 0:
            practice_words.extend(self._sample(new, remaining_slots))

        threshold = self.practice.reinforcement_threshold
        if len(practice_words) < threshold and learned:
            review_count = min(
                threshold - len(practice_words),
                math.floor(len(learned) * self.practice.reinforcement_ratio),
                self.practice.reinforcement_cap,
            )
            if review_count > 0:
                practice_words.extend(self._sample(learned, review_count))

        if not practice_words:
            logger.warning("Adaptive selection came up empty, falling back to random words")
            practice_words = self._sample(base_words, self.practice.fallback_size)

        words = self._shuffled(practice_words)
        practice_set_size.observe(len(words))
        logger.info(f"Selected {len(words)} practice words (mode: {PracticeMode(mode).value})")
        return words
