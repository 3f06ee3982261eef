from typing import Any, Dict, List

from .client import WikidataClient
from .config import first_non_empty
from .format import triplet_values_to_string


def _flag(value: bool) -> str:
    return "true" if value else "false"


def fetch_triplet_values(
    client: WikidataClient,
    ids: List[str],
    properties: List[str],
    *,
    external_ids: bool,
    all_ranks: bool,
    references: bool,
    qualifiers: bool,
    lang: str,
) -> Dict[str, Dict[str, Any]]:
    """Fetch structured claims for ids from the textifier, keyed by entity ID."""
    if not ids:
        return {}

    params = {
        "id": ",".join(ids),
        "external_ids": _flag(external_ids),
        "all_ranks": _flag(all_ranks),
        "references": _flag(references),
        "qualifiers": _flag(qualifiers),
        "lang": first_non_empty(lang, "en"),
        "format": "json",
    }
    if properties:
        params["pid"] = ",".join(properties)

    data = client.get_json(client.config.textifier_url, params, service="textifier")
    return data if isinstance(data, dict) else {}


def get_statements(
    client: WikidataClient, entity_id: str, include_external_ids: bool = False, lang: str = "en"
) -> str:
    """Return the textifier's triplet text for entity_id, or a not-found message."""
    clean_id = entity_id.strip()
    if clean_id == "":
        raise ValueError("entity ID cannot be empty")

    params = {
        "id": clean_id,
        "external_ids": _flag(include_external_ids),
        "all_ranks": "false",
        "qualifiers": "false",
        "lang": lang.strip() or "en",
        "format": "triplet",
    }
    data = client.get_json(client.config.textifier_url, params, service="textifier")

    text = ""
    if isinstance(data, dict):
        text = (data.get(clean_id) or "").strip()
    if text == "":
        return f"Entity {clean_id} not found"
    return text


def get_statement_values(
    client: WikidataClient, entity_id: str, property_id: str, lang: str = "en"
) -> str:
    """Return every value of one statement with rank, qualifiers and references."""
    clean_id = entity_id.strip()
    clean_pid = property_id.strip()
    if clean_id == "":
        raise ValueError("entity ID cannot be empty")
    if clean_pid == "":
        raise ValueError("property ID cannot be empty")

    result = fetch_triplet_values(
        client,
        [clean_id],
        [clean_pid],
        external_ids=True,
        all_ranks=True,
        references=True,
        qualifiers=True,
        lang=lang.strip() or "en",
    )

    entity = result.get(clean_id)
    if not entity:
        return f"Entity {clean_id} not found"

    text = triplet_values_to_string(clean_id, clean_pid, entity)
    if text.strip() == "":
        return f"No statement found for {clean_id} with property {clean_pid}"
    return text
