"""
Disambiguation of search results.

Responsibilities:
- Tag each search result with a coarse confidence (high/medium/low).
- Explain the confidence with short human-readable hints.

Non-Responsibilities:
- No network access.
- No reordering: rank is the 1-based input position.

Invariant:
Given identical inputs, resolve() returns identical candidates.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Tuple

from .search import SearchResponse, SearchResult

HIGH_CONFIDENCE_SCORE = 5
MEDIUM_CONFIDENCE_SCORE = 3


@dataclass(frozen=True)
class ResolveCandidate:
    rank: int
    id: str
    label: str
    description: str
    confidence: str
    hints: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ResolveResponse:
    source: str
    candidates: List[ResolveCandidate] = field(default_factory=list)


def confidence_hints(query: str, candidate: SearchResult, rank_index: int) -> Tuple[str, List[str]]:
    """Score one candidate against an already-normalized query."""
    ident = candidate.id.strip().lower()
    label = candidate.label.strip().lower()
    description = candidate.description.strip().lower()

    score = 0
    hints: List[str] = []

    if ident != "" and ident == query:
        score += 5
        hints.append("entity id matches input")

    if label != "" and label == query:
        score += 5
        hints.append("exact label match")
    elif label != "" and query != "" and (label.startswith(query) or query.startswith(label)):
        score += 3
        hints.append("strong label overlap")
    elif label != "" and query != "" and (query in label or label in query):
        score += 2
        hints.append("partial label overlap")

    if len(query) >= 3 and query in description:
        score += 1
        hints.append("description mentions query")

    if rank_index == 0:
        score += 1
        hints.append("top search result")

    if score >= HIGH_CONFIDENCE_SCORE:
        return "high", hints
    if score >= MEDIUM_CONFIDENCE_SCORE:
        return "medium", hints
    return "low", hints


def resolve(query: str, search: SearchResponse) -> ResolveResponse:
    normalized_query = query.strip().lower()

    candidates = []
    for index, result in enumerate(search.results):
        confidence, hints = confidence_hints(normalized_query, result, index)
        candidates.append(ResolveCandidate(
            rank=index + 1,
            id=result.id,
            label=result.label,
            description=result.description,
            confidence=confidence,
            hints=hints,
        ))

    return ResolveResponse(source=search.source, candidates=candidates)
