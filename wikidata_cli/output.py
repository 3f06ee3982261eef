import json
import sys
from typing import Any, Dict, List

from .resolve import ResolveCandidate, ResolveResponse
from .search import SearchResponse

MAX_VALUES_PER_FIELD = 5


def print_json(value: Any) -> None:
    sys.stdout.write(json.dumps(value, indent=2, ensure_ascii=False) + "\n")


def print_text(text: str) -> None:
    sys.stdout.write(text if text.endswith("\n") else text + "\n")


def render_search_text(response: SearchResponse, plural: str) -> str:
    if not response.results:
        return f"No matching Wikidata {plural} found."

    lines = []
    for item in response.results:
        label = item.label.strip()
        description = item.description.strip()
        if label == "" and description == "":
            lines.append(item.id)
            continue
        lines.append(f"{item.id}: {label} — {description}")
    return "\n".join(lines)


def render_candidate(candidate: ResolveCandidate) -> str:
    label = candidate.label.strip()
    description = candidate.description.strip()

    if label == "" and description == "":
        return candidate.id
    if label == "":
        return f"{candidate.id}: {description}"
    if description == "":
        return f"{candidate.id}: {label}"
    return f"{candidate.id}: {label} — {description}"


def render_resolve_text(response: ResolveResponse) -> str:
    if not response.candidates:
        return "No matching Wikidata entities found."

    lines = []
    for candidate in response.candidates:
        hints = f"; {', '.join(candidate.hints)}" if candidate.hints else ""
        lines.append(
            f"{candidate.rank}. {render_candidate(candidate)} "
            f"[{candidate.confidence} confidence{hints}]"
        )
    return "\n".join(lines)


def _field_lines(field: Dict[str, Any]) -> List[str]:
    lines = ["", f"{field['label']}:"]
    shown = field["values"][:MAX_VALUES_PER_FIELD]
    for value in shown:
        display = (value.get("display") or value.get("value") or "").strip()
        if display == "":
            continue
        entity_id = value.get("entity_id")
        ident = f" [{entity_id}]" if entity_id and display != entity_id else ""
        refs = f" (refs: {value['reference_count']})" if value.get("reference_count", 0) > 0 else ""
        lines.append(f"- {display}{ident}{refs}")

    remaining = len(field["values"]) - len(shown)
    if remaining > 0:
        lines.append(f"- ... +{remaining} more")
    return lines


def render_profile_text(result: Dict[str, Any]) -> str:
    """Concise text view of a profile; a message result renders as the message."""
    if result.get("message"):
        return result["message"]

    label = result.get("label", "").strip()
    lines = [f"{label} ({result['entity_id']})" if label else result["entity_id"]]

    description = result.get("description", "").strip()
    if description:
        lines.append(description)

    lines.append(f"Profile type: {result['profile_type']}")

    for field in result.get("fields", {}).values():
        if field["values"]:
            lines.extend(_field_lines(field))

    lines.append("")
    lines.append(f"Fetched at: {result['fetched_at']}")
    return "\n".join(lines)
