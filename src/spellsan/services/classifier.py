"""Word classification derived from progress."""
from string import ascii_uppercase
from typing import Dict, Iterable, List

from spellsan.models.progress_models import LetterProgress, ProgressRecord, WordCategory, percentage


def classify(record: ProgressRecord, word: str) -> WordCategory:
    """Get the current category of a word."""
    if word in record.difficult_words:
        return WordCategory.DIFFICULT
    if word in record.words_learned:
        return WordCategory.LEARNED
    return WordCategory.NEW


def partition_words(record: ProgressRecord, words: Iterable[str]) -> Dict[WordCategory, List[str]]:
    """Split words into disjoint category groups, keeping their input order."""
    groups: Dict[WordCategory, List[str]] = {category: [] for category in WordCategory}
    for word in words:
        groups[classify(record, word)].append(word)
    return groups


def alphabet_progress(record: ProgressRecord, corpus: Iterable[str]) -> List[LetterProgress]:
    """Get per-letter learned counts for the letters A to Z."""
    totals = {letter: 0 for letter in ascii_uppercase}
    learned = {letter: 0 for letter in ascii_uppercase}
    for word in corpus:
        letter = word[:1].upper()
        if letter not in totals:
            continue
        totals[letter] += 1
        if word in record.words_learned:
            learned[letter] += 1

    return [
        LetterProgress(
            letter=letter,
            total_words=totals[letter],
            learned_words=learned[letter],
            progress=percentage(learned[letter], totals[letter]),
        )
        for letter in ascii_uppercase
    ]
