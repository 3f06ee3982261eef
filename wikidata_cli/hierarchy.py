"""
Instance-of / subclass-of hierarchy around one entity.

The graph is collected level by level: every ID queued for a level is
fetched in a single textifier request, and an ID already in the graph is
never queued again, so cycles and diamonds are fetched once. Rendering
then descends with a strictly decreasing depth budget, which bounds the
recursion even when the graph has cycles.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Tuple

from .client import WikidataClient
from .config import first_non_empty
from .format import extract_entity_identifier
from .statements import fetch_triplet_values

INSTANCE_OF = "P31"
SUBCLASS_OF = "P279"


@dataclass(frozen=True)
class HierarchyNode:
    label: str = ""
    instance_of: List[str] = field(default_factory=list)
    subclass_of: List[str] = field(default_factory=list)


def extract_hierarchy_relations(
    claims: List[Dict[str, Any]],
) -> Tuple[List[str], List[str], Dict[str, str]]:
    """Split P31/P279 claims into ordered, de-duplicated target IDs plus inline labels."""
    related = {INSTANCE_OF: [], SUBCLASS_OF: []}
    seen = {INSTANCE_OF: set(), SUBCLASS_OF: set()}
    labels: Dict[str, str] = {}

    for claim in claims:
        pid = claim.get("PID")
        if pid not in related:
            continue

        for claim_value in claim.get("values") or []:
            ident, label = extract_entity_identifier(claim_value.get("value"))
            if ident == "":
                continue
            if label.strip() != "":
                labels[ident] = label
            if ident in seen[pid]:
                continue
            seen[pid].add(ident)
            related[pid].append(ident)

    return related[INSTANCE_OF], related[SUBCLASS_OF], labels


def hierarchy_to_json(qid: str, graph: Dict[str, HierarchyNode], level: int) -> Any:
    node = graph.get(qid)
    if node is None:
        return qid

    name = f"{first_non_empty(node.label, qid)} ({qid})"
    if level <= 0:
        return name

    return {
        name: {
            "instance of (P31)": [
                hierarchy_to_json(child, graph, level - 1)
                for child in node.instance_of if child in graph
            ],
            "subclass of (P279)": [
                hierarchy_to_json(child, graph, level - 1)
                for child in node.subclass_of if child in graph
            ],
        }
    }


def build_hierarchy(
    client: WikidataClient, entity_id: str, max_depth: int = 5, lang: str = "en"
) -> Dict[str, Any]:
    """Return {"tree": ...} for entity_id, or {"message": ...} if it is unknown upstream.

    Raises:
        ValueError: On blank entity_id or negative max_depth
    """
    clean_id = entity_id.strip()
    if clean_id == "":
        raise ValueError("entity ID cannot be empty")
    if max_depth < 0:
        raise ValueError("max-depth must be zero or greater")
    clean_lang = lang.strip() or "en"

    pending = [clean_id]
    graph: Dict[str, HierarchyNode] = {}
    labels: Dict[str, str] = {}
    level = 0

    while pending and level <= max_depth:
        response = fetch_triplet_values(
            client,
            pending,
            [INSTANCE_OF, SUBCLASS_OF],
            external_ids=False,
            all_ranks=False,
            references=False,
            qualifiers=True,
            lang=clean_lang,
        )

        next_level: List[str] = []
        for qid in pending:
            entity = response.get(qid)
            if not entity:
                continue

            own_label = entity.get("label") or ""
            if own_label.strip() != "":
                labels[qid] = own_label

            instance_ids, subclass_ids, discovered = extract_hierarchy_relations(entity.get("claims") or [])
            for ident, label in discovered.items():
                if label.strip() != "":
                    labels[ident] = label

            graph[qid] = HierarchyNode(instance_of=instance_ids, subclass_of=subclass_ids)

            for ident in instance_ids + subclass_ids:
                if ident.strip() != "" and ident not in next_level:
                    next_level.append(ident)

        pending = [ident for ident in next_level if ident not in graph]
        level += 1

    if clean_id not in graph:
        return {"message": f"Entity {clean_id} not found"}

    graph = {
        ident: replace(node, label=first_non_empty(labels.get(ident), ident))
        for ident, node in graph.items()
    }

    rendered = hierarchy_to_json(clean_id, graph, max_depth)
    if isinstance(rendered, dict):
        return {"tree": rendered}
    return {"tree": {"result": rendered}}
