import csv
import io
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from .client import HTTPStatusError, WikidataClient

DEFAULT_ROW_LIMIT = 10

ENTITY_URI_RE = re.compile(r"^http://www\.wikidata\.org/entity/([A-Z]\d+)$")


def shorten_entity_uri(value: str) -> str:
    """Turn a Wikidata entity URI into its bare ID; leave anything else alone."""
    match = ENTITY_URI_RE.match(value)
    if match:
        return match.group(1)
    return value


def clean_sparql_error_message(body: str) -> str:
    """First line of a query-service error, without the Java stack trace."""
    trimmed = body.strip()
    if trimmed == "":
        return "SPARQL query failed"

    first_line = trimmed.split("\n")[0].strip()
    if first_line == "":
        return "SPARQL query failed"
    return first_line.split("\tat ")[0].strip()


def to_semicolon_csv(variables: List[str], rows: List[Dict[str, str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";", lineterminator="\n")
    writer.writerow(["", *variables])
    for index, row in enumerate(rows):
        writer.writerow([str(index), *(row.get(v, "") for v in variables)])
    return buffer.getvalue()


def execute_sparql(client: WikidataClient, query: str, limit: int = DEFAULT_ROW_LIMIT) -> Dict[str, Any]:
    """
    Run a SPARQL query against the Wikidata Query Service.

    Returns {"vars", "rows", "csv"} on success, or {"message"} when the
    service rejects the query with HTTP 400.
    """
    clean_query = query.strip()
    if clean_query == "":
        raise ValueError("SPARQL query cannot be empty")
    clean_limit = DEFAULT_ROW_LIMIT if limit <= 0 else limit

    try:
        data = client.get_json(
            client.config.wikidata_query_url,
            {"query": clean_query, "format": "json"},
            service="sparql",
        )
    except HTTPStatusError as e:
        if e.status_code == 400:
            return {"message": clean_sparql_error_message(e.body)}
        raise

    variables = list((data.get("head") or {}).get("vars") or [])
    bindings = (data.get("results") or {}).get("bindings") or []

    rows = []
    for binding in bindings[:clean_limit]:
        rows.append({
            v: shorten_entity_uri((binding.get(v) or {}).get("value") or "")
            for v in variables
        })

    return {
        "vars": variables,
        "rows": rows,
        "csv": to_semicolon_csv(variables, rows),
    }


def resolve_sparql_query(args: List[str], query_flag: Optional[str], query_file: Optional[str]) -> str:
    """Pick the query text from exactly one of: positional arg, --query, --file."""
    if len(args) > 1:
        raise ValueError("expected at most one positional query argument")

    sources = 0
    query = ""

    if len(args) == 1 and args[0].strip() != "":
        sources += 1
        query = args[0]

    if query_flag and query_flag.strip() != "":
        sources += 1
        query = query_flag

    if query_file and query_file.strip() != "":
        sources += 1
        try:
            query = Path(query_file).read_text(encoding="utf-8")
        except OSError as e:
            raise ValueError(f"failed to read query file: {e}") from e

    if sources == 0:
        raise ValueError("provide a query as an argument, via --query, or via --file")
    if sources > 1:
        raise ValueError("provide only one query source among positional arg, --query, and --file")

    query = query.strip()
    if query == "":
        raise ValueError("SPARQL query cannot be empty")
    return query
