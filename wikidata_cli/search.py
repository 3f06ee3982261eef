"""
Hybrid entity search.

Vector similarity search runs first; when it yields nothing or fails, the
same query goes to the keyword search API. Both paths produce the same
SearchResult shape, and SearchResponse.source records which one answered.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .client import WikidataClient, WikidataError
from .config import first_non_empty
from .logger import get_logger

DEFAULT_LIMIT = 10
METADATA_BATCH_SIZE = 50

KINDS = ("item", "property")


@dataclass(frozen=True)
class SearchResult:
    id: str
    label: str = ""
    description: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class SearchResponse:
    source: str
    results: List[SearchResult] = field(default_factory=list)


@dataclass(frozen=True)
class VectorOutcome:
    """Result of the vector step: "hits", "empty" or "failed"."""

    status: str
    results: List[SearchResult] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def should_fall_back(self) -> bool:
        return self.status != "hits"


def pick_lang_value(values: Dict[str, Any], lang: str) -> str:
    """Pick a label/description: requested language, then "mul", then "en"."""
    for key in (lang, "mul", "en"):
        entry = values.get(key)
        if not isinstance(entry, dict):
            continue
        text = (entry.get("value") or "").strip()
        if text != "":
            return text
    return ""


def get_labels_and_descriptions(
    client: WikidataClient, ids: List[str], lang: str
) -> Dict[str, Dict[str, str]]:
    """Resolve labels and descriptions for ids, METADATA_BATCH_SIZE ids per request."""
    result: Dict[str, Dict[str, str]] = {}
    for start in range(0, len(ids), METADATA_BATCH_SIZE):
        chunk = ids[start:start + METADATA_BATCH_SIZE]
        params = {
            "action": "wbgetentities",
            "ids": "|".join(chunk),
            "languages": f"{lang}|mul|en",
            "props": "labels|descriptions",
            "format": "json",
            "origin": "*",
        }
        data = client.get_json(client.config.wikidata_api_url, params)
        for entity_id, entity in (data.get("entities") or {}).items():
            result[entity_id] = {
                "label": pick_lang_value(entity.get("labels") or {}, lang),
                "description": pick_lang_value(entity.get("descriptions") or {}, lang),
            }
    return result


def vector_search(
    client: WikidataClient, query: str, lang: str, limit: int, kind: str
) -> VectorOutcome:
    """Run vector search; never raises for remote failures."""
    headers = {}
    if client.config.vector_api_secret != "":
        headers["x-api-secret"] = client.config.vector_api_secret

    endpoint = f"{client.config.vector_search_url.rstrip('/')}/{kind}/query/"
    id_key = "QID" if kind == "item" else "PID"
    try:
        response = client.get_json(
            endpoint,
            {"query": query, "k": str(limit)},
            headers,
            service="vector-search",
        )

        ids: List[str] = []
        seen = set()
        for candidate in response or []:
            ident = (candidate.get(id_key) or "").strip() if isinstance(candidate, dict) else ""
            if ident == "" or ident in seen:
                continue
            seen.add(ident)
            ids.append(ident)

        if not ids:
            return VectorOutcome(status="empty")

        metadata = get_labels_and_descriptions(client, ids, lang)
    except (WikidataError, AttributeError, TypeError) as e:
        return VectorOutcome(status="failed", error=e)

    results = [
        SearchResult(
            id=ident,
            label=metadata.get(ident, {}).get("label", ""),
            description=metadata.get(ident, {}).get("description", ""),
        )
        for ident in ids
    ]
    return VectorOutcome(status="hits", results=results[:limit])


def keyword_search(
    client: WikidataClient, query: str, lang: str, limit: int, kind: str
) -> List[SearchResult]:
    params = {
        "action": "wbsearchentities",
        "type": kind,
        "search": query,
        "limit": str(limit),
        "language": lang,
        "format": "json",
        "origin": "*",
    }
    data = client.get_json(client.config.wikidata_api_url, params)

    results = []
    for candidate in data.get("search") or []:
        display = candidate.get("display") or {}
        results.append(SearchResult(
            id=candidate.get("id", ""),
            label=first_non_empty(
                (display.get("label") or {}).get("value"),
                candidate.get("label"),
            ),
            description=first_non_empty(
                (display.get("description") or {}).get("value"),
                candidate.get("description"),
            ),
        ))
    return results


def search(
    client: WikidataClient,
    query: str,
    lang: str = "en",
    limit: int = DEFAULT_LIMIT,
    kind: str = "item",
    disable_vector: bool = False,
) -> SearchResponse:
    """
    Search items or properties, vector first with keyword fallback.

    Raises:
        ValueError: If query is blank or kind is unknown
        WikidataError: If keyword search fails
    """
    clean_query = query.strip()
    if clean_query == "":
        raise ValueError("query cannot be empty")
    if kind not in KINDS:
        raise ValueError(f"unsupported search kind: {kind}")

    clean_lang = lang.strip() or "en"
    clean_limit = DEFAULT_LIMIT if limit <= 0 else limit

    if not disable_vector:
        outcome = vector_search(client, clean_query, clean_lang, clean_limit, kind)
        if not outcome.should_fall_back:
            return SearchResponse(source="vector", results=outcome.results)

        logger = get_logger()
        logger.record_vector_fallback(outcome.status)
        logger.info(
            "Vector search fell back to keyword search",
            reason=outcome.status,
            error=str(outcome.error) if outcome.error else None,
        )

    return SearchResponse(
        source="keyword",
        results=keyword_search(client, clean_query, clean_lang, clean_limit, kind),
    )


def search_items(client: WikidataClient, query: str, lang: str = "en",
                 limit: int = DEFAULT_LIMIT, disable_vector: bool = False) -> SearchResponse:
    return search(client, query, lang, limit, "item", disable_vector)


def search_properties(client: WikidataClient, query: str, lang: str = "en",
                      limit: int = DEFAULT_LIMIT, disable_vector: bool = False) -> SearchResponse:
    return search(client, query, lang, limit, "property", disable_vector)
