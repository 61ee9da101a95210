"""Web search evaluator.

Checks that the model searched the web, optionally for expected queries
and on expected domains.

Config:
    require_web_search: False scores 100 whether or not a search ran
    expected_queries: terms that should appear in a search query
    require_all_queries: True scores the percentage of terms matched,
        False scores 100 when any of them matched
    expected_domains: domains that should appear among the sources
    require_all_domains: same as require_all_queries, for domains
    min_sources_consulted: sources the model should have researched
    min_sources_cited: sources the response should reference
    threshold_score: passing score (80)

Score is 40 for searching plus up to 30 for queries, 20 for domains and
5 each for the two source minimums. A check that is not configured gets
its full share.
"""

from typing import List, Optional
from urllib.parse import urlparse

from .normalized import BaseNormalizedEvaluator


def _clean_list(value) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        value = [value]
    return [str(item).strip() for item in value if str(item).strip()]


def _unique_by_url(items: List[dict]) -> List[dict]:
    seen = set()
    unique = []
    for item in items:
        url = item.get("url")
        if url in seen:
            continue
        seen.add(url)
        unique.append(item)
    return unique


class WebSearchEvaluator(BaseNormalizedEvaluator):
    """Checks if the model used web search with the expected queries and sources."""

    key = "web_search"
    name = "Web Search"
    description = "Checks if the model searched the web for the expected queries and domains"
    icon = "globe"
    category = "tool_use"

    DEFAULT_CONFIG = {
        "require_web_search": True,
        "expected_queries": [],
        "require_all_queries": False,
        "expected_domains": [],
        "require_all_domains": False,
        "min_sources_consulted": 0,
        "min_sources_cited": 0,
        "threshold_score": 80,
    }
    PARAM_SCHEMA = {
        "require_web_search": {"type": "boolean"},
        "expected_queries": {"type": "array"},
        "require_all_queries": {"type": "boolean"},
        "expected_domains": {"type": "array"},
        "require_all_domains": {"type": "boolean"},
        "min_sources_consulted": {"type": "integer"},
        "min_sources_cited": {"type": "integer"},
        "threshold_score": {"type": "integer"},
    }

    def __init__(self, data, config: dict = None):
        super().__init__(data, config)
        self._sources_consulted = None
        self._sources_cited = None

    @property
    def expected_queries(self) -> List[str]:
        return _clean_list(self.config.get("expected_queries"))

    @property
    def expected_domains(self) -> List[str]:
        return _clean_list(self.config.get("expected_domains"))

    @property
    def min_sources_consulted(self) -> int:
        return int(self.config.get("min_sources_consulted") or 0)

    @property
    def min_sources_cited(self) -> int:
        return int(self.config.get("min_sources_cited") or 0)

    # ---- scoring ----

    def evaluate_score(self) -> float:
        if not self.config.get("require_web_search"):
            return 100
        if not self.web_search_results:
            return 0

        score = 40
        if self.expected_queries:
            score += self.match_score(
                self.matched_queries(), self.expected_queries, self.config.get("require_all_queries")
            ) * 0.3
        else:
            score += 30

        if self.expected_domains:
            score += self.match_score(
                self.matched_domains(), self.expected_domains, self.config.get("require_all_domains")
            ) * 0.2
        else:
            score += 20

        if self.min_sources_consulted > 0:
            score += self.minimum_score(len(self.sources_consulted()), self.min_sources_consulted) * 0.05
        else:
            score += 5

        if self.min_sources_cited > 0:
            score += self.minimum_score(len(self.sources_cited()), self.min_sources_cited) * 0.05
        else:
            score += 5

        return round(score, 2)

    def generate_feedback(self) -> str:
        if not self.web_search_results:
            if self.config.get("require_web_search"):
                return "✗ Web search was not used."
            return "Web search was not used (not required)."

        queries = self.queries()
        lines = [
            "Web Search Evaluation Results:",
            f"Searches performed: {len(self.web_search_results)}",
            f"Queries: {', '.join(queries) if queries else 'None detected'}",
            f"Sources consulted: {len(self.sources_consulted())} (URLs researched)",
            f"Sources cited: {len(self.sources_cited())} (URLs referenced in response)",
        ]

        if self.expected_queries:
            matched = self.matched_queries()
            lines.append(f"Expected queries: {', '.join(self.expected_queries)}")
            lines.append(f"Matched queries: {', '.join(matched) if matched else 'None'}")

        if self.expected_domains:
            matched = self.matched_domains()
            lines.append(f"Expected domains: {', '.join(self.expected_domains)}")
            lines.append(f"Matched domains: {', '.join(matched) if matched else 'None'}")

        if self.min_sources_consulted > 0:
            lines.append(f"Min sources consulted required: {self.min_sources_consulted}")
        if self.min_sources_cited > 0:
            lines.append(f"Min sources cited required: {self.min_sources_cited}")

        lines.append("✓ Web search requirements met." if self.is_passed() else "✗ Some requirements not met.")
        return "\n".join(lines)

    def get_metadata(self) -> dict:
        metadata = super().get_metadata()
        metadata.update({
            "web_search_count": len(self.web_search_results),
            "queries": self.queries(),
            "sources_consulted": len(self.sources_consulted()),
            "sources_consulted_list": self.sources_consulted(),
            "sources_cited": len(self.sources_cited()),
            "sources_cited_list": self.sources_cited(),
            "matched_queries": self.matched_queries(),
            "matched_domains": self.matched_domains(),
            "expected_queries": self.expected_queries,
            "expected_domains": self.expected_domains,
        })
        return metadata

    # ---- search result extraction ----

    def queries(self) -> List[str]:
        queries = []
        for result in self.web_search_results:
            query = result.get("query")
            if query and query not in queries:
                queries.append(query)
        return queries

    def sources_consulted(self) -> List[dict]:
        """Sources the model researched, one per URL."""
        if self._sources_consulted is None:
            sources = [s for r in self.web_search_results for s in r.get("sources") or []]
            self._sources_consulted = _unique_by_url(sources)
        return self._sources_consulted

    def sources_cited(self) -> List[dict]:
        """URL citations in the response, one per URL."""
        if self._sources_cited is None:
            citations = [c for r in self.web_search_results for c in r.get("citations") or []]
            self._sources_cited = _unique_by_url(citations)
        return self._sources_cited

    def matched_queries(self) -> List[str]:
        queries = [q.lower() for q in self.queries()]
        return [e for e in self.expected_queries if any(e.lower() in q for q in queries)]

    def matched_domains(self) -> List[str]:
        domains = []
        for source in self.sources_consulted() + self.sources_cited():
            domain = self.extract_domain(source.get("url"))
            if domain and domain.lower() not in domains:
                domains.append(domain.lower())
        return [e for e in self.expected_domains if any(e.lower() in d for d in domains)]

    @staticmethod
    def extract_domain(url: Optional[str]) -> Optional[str]:
        if not url:
            return None
        try:
            return urlparse(url).hostname
        except ValueError:
            return None

    @staticmethod
    def match_score(matched: list, expected: list, require_all: bool) -> float:
        if not expected:
            return 100
        if require_all:
            return 100 if len(matched) == len(expected) else len(matched) / len(expected) * 100
        return 100 if matched else 0

    @staticmethod
    def minimum_score(actual: int, minimum: int) -> float:
        if minimum <= 0 or actual >= minimum:
            return 100
        return actual / minimum * 100
