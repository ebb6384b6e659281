"""Loading of the practice word corpus."""
import logging
from pathlib import Path
from typing import List, Union

logger = logging.getLogger(__name__)


def load_corpus(path: Union[str, Path]) -> List[str]:
    """Read one word per line, skipping blanks and # comments, without duplicates."""
    words: List[str] = []
    seen = set()
    with open(path, encoding="utf-8") as file:
        for line in file:
            word = line.strip()
            if not word or word.startswith("#") or word in seen:
                continue
            seen.add(word)
            words.append(word)
    logger.info(f"Loaded {len(words)} words from {path}")
    return words
