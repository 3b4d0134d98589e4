"""
Research Agent
==============

Handles batches classified as `research`.

After the model produces a suggestion, a secondary lookup appends
"Related Resources" built from keywords in the suggestion body. The
lookup is a separate step with an explicit EnrichmentResult; any failure
leaves the primary suggestion untouched.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from clippy_agent.agents.base import BaseAgent
from clippy_agent.llm.client import AnalysisClient
from clippy_agent.models.suggestion import AgentKind
from clippy_agent.search.client import SearchClient, SearchResult
from clippy_agent.search.keywords import extract_keywords


logger = logging.getLogger(__name__)


QUERY_KEYWORDS = 3
MAX_RESOURCES = 3
SNIPPET_CHARS = 100


@dataclass(frozen=True)
class EnrichmentResult:
    """
    Outcome of the related-resource lookup.

    Attributes:
        body: Final suggestion body (original body when nothing was added)
        query: Search query used, if any
        results: Resources appended to the body
        error: Failure message, if the lookup failed
    """

    body: str
    query: Optional[str] = None
    results: List[SearchResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def enriched(self) -> bool:
        return bool(self.results)


def format_resources(results: List[SearchResult]) -> str:
    """Render results as a markdown "Related Resources" section."""
    section = "\n\n**Related Resources:**\n"
    for index, result in enumerate(results, start=1):
        section += f"\n{index}. [{result.title}]({result.url})"
        if result.snippet:
            section += f"\n   {result.snippet[:SNIPPET_CHARS]}..."
    return section


class ResearchAgent(BaseAgent):
    """
    Summarizes what the user is reading and suggests related resources.

    Attributes:
        search_client: Secondary lookup; None disables enrichment
    """

    kind = AgentKind.RESEARCH
    title = "🔍 Research Assistant"

    def __init__(
        self,
        client: AnalysisClient,
        search_client: Optional[SearchClient] = None,
        max_resources: int = MAX_RESOURCES,
    ) -> None:
        if max_resources < 1:
            raise ValueError("max_resources must be >= 1")

        super().__init__(client)
        self.search_client = search_client
        self.max_resources = max_resources
        self._enrichment_failures: int = 0

    async def enrich(self, body: str) -> EnrichmentResult:
        """
        Append related resources to a suggestion body.

        Never raises; on failure the original body is returned.
        """
        if self.search_client is None or not body:
            return EnrichmentResult(body=body)

        keywords = extract_keywords(body)
        if not keywords:
            return EnrichmentResult(body=body)

        query = " ".join(keywords[:QUERY_KEYWORDS])
        try:
            results = await self.search_client.search(query, self.max_resources)
        except Exception as e:
            self._enrichment_failures += 1
            logger.error(f"Related-resource search failed for {query!r}: {e}")
            return EnrichmentResult(body=body, query=query, error=str(e))

        results = list(results)[: self.max_resources]
        if not results:
            return EnrichmentResult(body=body, query=query)

        logger.info(f"Added {len(results)} related resources for {query!r}")
        return EnrichmentResult(
            body=body + format_resources(results),
            query=query,
            results=results,
        )

    async def finalize_body(self, body: str) -> str:
        return (await self.enrich(body)).body

    def get_metrics(self) -> dict:
        metrics = super().get_metrics()
        metrics["enrichment_failures"] = self._enrichment_failures
        return metrics
