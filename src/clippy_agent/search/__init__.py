"""
Search Module
=============

Related-resource lookup for the research agent.
"""

from clippy_agent.search.client import (
    DuckDuckGoSearchClient,
    SearchClient,
    SearchError,
    SearchResult,
)
from clippy_agent.search.keywords import STOPWORDS, extract_keywords


__all__ = [
    "SearchClient",
    "DuckDuckGoSearchClient",
    "SearchError",
    "SearchResult",
    "STOPWORDS",
    "extract_keywords",
]
