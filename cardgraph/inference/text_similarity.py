"""Word-overlap similarity functions for card text."""

import re

WORD_PATTERN = re.compile(r"[^\W_]+(?:['-][^\W_]+)*")


def tokenize(text: str, min_length: int = 3) -> set[str]:
    """Split text into a set of lower-cased words.

    Args:
        text: Text to tokenize
        min_length: Minimum word length to keep

    Returns:
        Set of distinct words of at least ``min_length`` characters
    """
    if not text:
        return set()
    return {word for word in WORD_PATTERN.findall(text.lower()) if len(word) >= min_length}


def jaccard(first: set[str], second: set[str]) -> float:
    """Jaccard index of two sets, 0.0 when both are empty."""
    union = first | second
    if not union:
        return 0.0
    return len(first & second) / len(union)


def text_similarity(first_text: str, second_text: str, min_length: int = 3) -> float:
    """Calculate the word-overlap similarity of two texts.

    Args:
        first_text: First text
        second_text: Second text
        min_length: Minimum word length considered

    Returns:
        Jaccard similarity of the word sets between 0.0 and 1.0
    """
    if not first_text or not second_text:
        return 0.0
    return jaccard(tokenize(first_text, min_length), tokenize(second_text, min_length))
