"""
Rendering of textifier claim values as plain text.

Claim values arrive as loosely shaped JSON: plain strings, entity
references ({"QID": ..., "label": ...}), quantities ({"amount": ...,
"unit": ...}), containers holding "values"/"value"/"string", or anything
else. stringify() dispatches on shape in a fixed priority order and falls
back to sorted key=value pairs so unknown shapes still render the same way
every time.
"""

from typing import Any, Dict, List, Tuple


def _as_dict(value: Any):
    return value if isinstance(value, dict) else None


def _entity_ref(value: Any, strip: bool = False) -> Tuple[str, str]:
    entity = _as_dict(value)
    if entity is None:
        return "", ""

    for key in ("QID", "PID"):
        ident = entity.get(key)
        if not isinstance(ident, str):
            continue
        if strip:
            ident = ident.strip()
        if ident != "":
            label = entity.get("label")
            label = label if isinstance(label, str) else ""
            return ident, label.strip() if strip else label
    return "", ""


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(stringify(item) for item in value)
    return str(value)


def stringify(value: Any) -> str:
    if value is None:
        return ""

    if isinstance(value, str):
        return value

    typed = _as_dict(value)
    if typed is None:
        return _scalar_text(value)

    values = typed.get("values")
    if isinstance(values, list):
        return ", ".join(stringify(item.get("value") if isinstance(item, dict) else None) for item in values)

    if "value" in typed:
        return stringify(typed["value"])

    if "string" in typed:
        return stringify(typed["string"])

    ident, label = _entity_ref(typed)
    if ident:
        if label.strip() == "":
            return ident
        return f"{label} ({ident})"

    if "amount" in typed:
        amount = stringify(typed["amount"])
        unit = typed.get("unit")
        unit = unit if isinstance(unit, str) else ""
        text = amount if unit.strip() == "" else f"{amount} {unit}"
        return text.strip()

    return ", ".join(f"{key}={stringify(typed[key])}" for key in sorted(typed))


def extract_entity_identifier(value: Any) -> Tuple[str, str]:
    """Return trimmed (id, label) if value is an entity reference, else ("", "")."""
    return _entity_ref(value, strip=True)


def stringify_qualifier(qualifier: Dict[str, Any]) -> str:
    return ", ".join(stringify(v.get("value")) for v in qualifier.get("values") or [])


def _sub_claim_lines(claims: List[Dict[str, Any]]) -> List[str]:
    return [
        f"    - {c.get('property_label', '')} ({c.get('PID', '')}): {stringify_qualifier(c)}"
        for c in claims
    ]


def triplet_values_to_string(entity_id: str, property_id: str, entity: Dict[str, Any]) -> str:
    """
    Render every value of every claim on entity as a text block.

    Each block has a header line, a rank line, an optional qualifier list
    and one section per reference group. Blocks are separated by a blank
    line.
    """
    claims = entity.get("claims") or []
    if not claims:
        return ""

    label = entity.get("label") or ""
    entity_label = entity_id if label.strip() == "" else label

    blocks: List[str] = []
    for claim in claims:
        pid = claim.get("PID") or ""
        prop = property_id if pid.strip() == "" else pid
        for claim_value in claim.get("values") or []:
            lines = [
                f"{entity_label} ({entity_id}): {claim.get('property_label', '')} ({prop}): "
                f"{stringify(claim_value.get('value'))}"
            ]

            rank = claim_value.get("rank") or ""
            lines.append(f"  Rank: {rank if rank.strip() else 'normal'}")

            qualifiers = claim_value.get("qualifiers") or []
            if qualifiers:
                lines.append("  Qualifier:")
                lines.extend(_sub_claim_lines(qualifiers))

            for index, reference in enumerate(claim_value.get("references") or [], start=1):
                lines.append(f"  Reference {index}:")
                lines.extend(_sub_claim_lines(reference))

            blocks.append("\n".join(lines))

    return "\n\n".join(blocks).strip()
