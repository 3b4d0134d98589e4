"""
Keyword extraction for related-resource lookup.

Deterministic and dependency-free: lowercase, strip punctuation, drop
stopwords and short words, dedupe keeping first occurrence.
"""

import re
from typing import FrozenSet, List


STOPWORDS: FrozenSet[str] = frozenset(
    {
        "a", "an", "and", "or", "but", "the", "in", "on", "at", "to", "for",
        "of", "by", "from", "with", "into", "onto", "over", "under", "about",
        "after", "before", "between", "through", "during", "above", "below",
        "is", "was", "are", "were", "has", "have", "had", "be", "been", "being",
        "this", "that", "these", "those", "there", "their", "they", "them",
        "then", "than", "when", "where", "which", "while", "what", "will",
        "would", "could", "should", "shall", "might", "must", "your", "yours",
        "some", "such", "also", "just", "only", "very", "more", "most",
        "here", "each", "other", "does", "doing", "done",
    }
)

MIN_KEYWORD_LENGTH = 4
MAX_KEYWORDS = 5

_PUNCTUATION = re.compile(r"[^\w\s]")


def extract_keywords(text: str, limit: int = MAX_KEYWORDS) -> List[str]:
    """
    Extract up to `limit` search keywords from free text.

    Args:
        text: Source text (e.g. a suggestion body)
        limit: Maximum number of keywords

    Returns:
        Keywords in order of first appearance.
    """
    if not text:
        return []

    words = _PUNCTUATION.sub(" ", text.lower()).split()
    keywords: List[str] = []
    seen = set()
    for word in words:
        if len(word) < MIN_KEYWORD_LENGTH or word in STOPWORDS or word in seen:
            continue
        seen.add(word)
        keywords.append(word)
        if len(keywords) >= limit:
            break
    return keywords
