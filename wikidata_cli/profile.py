"""
Curated entity profiles.

Each profile type maps a fixed, ordered list of semantic fields onto
Wikidata properties. One textifier request fetches every property the
profile needs; the claims are then spread over the fields, labelled and
de-duplicated.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .client import WikidataClient
from .config import first_non_empty
from .format import extract_entity_identifier, stringify
from .statements import fetch_triplet_values

PROFILE_TYPES = ("company", "person", "place")


@dataclass(frozen=True)
class ProfileFieldDefinition:
    key: str
    label: str
    property_ids: Tuple[str, ...]


def _field(key: str, label: str, *property_ids: str) -> ProfileFieldDefinition:
    return ProfileFieldDefinition(key=key, label=label, property_ids=property_ids)


PROFILE_FIELDS: Dict[str, Tuple[ProfileFieldDefinition, ...]] = {
    "company": (
        _field("instance_of", "Instance of", "P31"),
        _field("industry", "Industry", "P452"),
        _field("country", "Country", "P17"),
        _field("headquarters", "Headquarters location", "P159"),
        _field("inception", "Inception date", "P571"),
        _field("founded_by", "Founded by", "P112"),
        _field("chief_executive_officer", "Chief executive officer", "P169"),
        _field("owner", "Owner", "P127"),
        _field("employees", "Number of employees", "P1128"),
        _field("official_website", "Official website", "P856"),
    ),
    "person": (
        _field("instance_of", "Instance of", "P31"),
        _field("occupation", "Occupation", "P106"),
        _field("citizenship", "Country of citizenship", "P27"),
        _field("date_of_birth", "Date of birth", "P569"),
        _field("date_of_death", "Date of death", "P570"),
        _field("place_of_birth", "Place of birth", "P19"),
        _field("place_of_death", "Place of death", "P20"),
        _field("employer", "Employer", "P108"),
        _field("educated_at", "Educated at", "P69"),
        _field("official_website", "Official website", "P856"),
    ),
    "place": (
        _field("instance_of", "Instance of", "P31"),
        _field("country", "Country", "P17"),
        _field("located_in_administrative_entity", "Located in administrative entity", "P131"),
        _field("continent", "Continent", "P30"),
        _field("inception", "Inception date", "P571"),
        _field("population", "Population", "P1082"),
        _field("area", "Area", "P2046"),
        _field("elevation", "Elevation above sea level", "P2048"),
        _field("coordinate_location", "Coordinate location", "P625"),
        _field("official_website", "Official website", "P856"),
    ),
}


def profile_field_definitions(profile_type: str) -> Tuple[ProfileFieldDefinition, ...]:
    definitions = PROFILE_FIELDS.get(profile_type)
    if definitions is None:
        raise ValueError(f"unsupported profile type: {profile_type}")
    return definitions


def profile_property_ids(definitions: Tuple[ProfileFieldDefinition, ...]) -> List[str]:
    """Union of property IDs across definitions, first occurrence order."""
    ids: List[str] = []
    for definition in definitions:
        for pid in definition.property_ids:
            if pid not in ids:
                ids.append(pid)
    return ids


def empty_profile_fields(definitions: Tuple[ProfileFieldDefinition, ...]) -> Dict[str, Dict[str, Any]]:
    return {
        d.key: {"label": d.label, "property_ids": list(d.property_ids), "values": []}
        for d in definitions
    }


def _normalize_value(claim_value: Dict[str, Any], pid: str, property_label: str) -> Optional[Dict[str, Any]]:
    entity_id, entity_label = extract_entity_identifier(claim_value.get("value"))
    if entity_id:
        display = first_non_empty(entity_label, entity_id)
    else:
        display = stringify(claim_value.get("value")).strip()
    if display == "":
        return None

    normalized = {
        "display": display,
        "value": display,
        "source_property_id": pid,
        "source_property_label": property_label,
        "rank": first_non_empty(claim_value.get("rank"), "normal"),
        "reference_count": len(claim_value.get("references") or []),
    }
    if entity_id:
        normalized["entity_id"] = entity_id
    return normalized


def _dedupe_key(value: Dict[str, Any]) -> Tuple[str, str, str, str, int]:
    return (
        value["display"],
        value.get("entity_id", ""),
        value["source_property_id"],
        value["rank"],
        value["reference_count"],
    )


def profile_fields_from_entity(
    entity: Dict[str, Any], definitions: Tuple[ProfileFieldDefinition, ...]
) -> Dict[str, Dict[str, Any]]:
    fields = empty_profile_fields(definitions)

    for definition in definitions:
        values: List[Dict[str, Any]] = []
        seen = set()

        for claim in entity.get("claims") or []:
            pid = (claim.get("PID") or "").strip()
            if pid == "" or pid not in definition.property_ids:
                continue

            property_label = first_non_empty(claim.get("property_label"), pid)
            for claim_value in claim.get("values") or []:
                normalized = _normalize_value(claim_value, pid, property_label)
                if normalized is None:
                    continue
                key = _dedupe_key(normalized)
                if key in seen:
                    continue
                seen.add(key)
                values.append(normalized)

        fields[definition.key]["values"] = values

    return fields


def _timestamp(now: datetime) -> str:
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def get_profile(
    client: WikidataClient,
    entity_id: str,
    profile_type: str = "company",
    lang: str = "en",
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Build a curated profile of entity_id.

    Args:
        client: Remote access client
        entity_id: Item ID, e.g. "Q42"
        profile_type: One of PROFILE_TYPES
        lang: Language for labels
        now: Aggregation time (default: current UTC time)

    Returns:
        Profile dict; carries "message" and blank label/description if the
        entity is unknown upstream.
    """
    clean_id = entity_id.strip()
    if clean_id == "":
        raise ValueError("entity ID cannot be empty")
    definitions = profile_field_definitions(profile_type)
    clean_lang = lang.strip() or "en"
    property_ids = profile_property_ids(definitions)

    response = fetch_triplet_values(
        client,
        [clean_id],
        property_ids,
        external_ids=True,
        all_ranks=True,
        references=True,
        qualifiers=True,
        lang=clean_lang,
    )

    result: Dict[str, Any] = {
        "entity_id": clean_id,
        "profile_type": profile_type,
        "lang": clean_lang,
        "fetched_at": _timestamp(now or datetime.now(timezone.utc)),
        "label": "",
        "description": "",
        "fields": empty_profile_fields(definitions),
        "sources": {
            "provider": client.config.textifier_url,
            "property_ids": property_ids,
        },
    }

    entity = response.get(clean_id)
    if not entity:
        result["message"] = f"Entity {clean_id} not found"
        return result

    result["label"] = (entity.get("label") or "").strip()
    result["description"] = (entity.get("description") or "").strip()
    result["fields"] = profile_fields_from_entity(entity, definitions)
    return result
