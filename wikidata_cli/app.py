import argparse
import json
import os
from pathlib import Path
from typing import List, Optional

from .env import load_env
from .client import WikidataClient, WikidataError
from .config import Config, default_config, format_duration, parse_duration
from .hierarchy import build_hierarchy
from .logger import get_logger, reset_logger
from .output import (
    print_json,
    print_text,
    render_profile_text,
    render_resolve_text,
    render_search_text,
)
from .profile import PROFILE_TYPES, get_profile
from .resolve import resolve
from .search import search_items, search_properties
from .sparql import execute_sparql, resolve_sparql_query
from .statements import get_statements, get_statement_values
from .version import BuildInfo, build_info_from_env

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def build_config(args: argparse.Namespace, defaults: Config) -> Config:
    timeout = parse_duration(args.timeout) if args.timeout else None
    return defaults.with_overrides(
        wikidata_api_url=args.wikidata_api_url,
        wikidata_query_url=args.wikidata_query_url,
        textifier_url=args.textifier_url,
        vector_search_url=args.vector_search_url,
        vector_api_secret=args.vector_api_secret,
        user_agent=args.user_agent,
        timeout=timeout,
    )


def _search_payload(args: argparse.Namespace, source: str, key: str, items: list, empty_message: str) -> dict:
    payload = {
        "query": args.query,
        "lang": args.lang,
        "limit": args.limit,
        "source": source,
        key: [item.to_dict() for item in items],
    }
    if not items:
        payload["message"] = empty_message
    return payload


def cmd_search_items(args: argparse.Namespace) -> None:
    result = search_items(args.client, args.query, args.lang, args.limit, args.no_vector)
    if args.json:
        print_json(_search_payload(args, result.source, "results", result.results, "No matching Wikidata items found."))
        return
    print_text(render_search_text(result, "items"))


def cmd_search_properties(args: argparse.Namespace) -> None:
    result = search_properties(args.client, args.query, args.lang, args.limit, args.no_vector)
    if args.json:
        print_json(_search_payload(args, result.source, "results", result.results, "No matching Wikidata properties found."))
        return
    print_text(render_search_text(result, "properties"))


def cmd_resolve(args: argparse.Namespace) -> None:
    found = search_items(args.client, args.query, args.lang, args.limit, args.no_vector)
    response = resolve(args.query, found)
    if args.json:
        print_json(_search_payload(args, response.source, "candidates", response.candidates, "No matching Wikidata entities found."))
        return
    print_text(render_resolve_text(response))


def cmd_profile(args: argparse.Namespace) -> None:
    result = get_profile(args.client, args.entity_id, args.type, args.lang)
    if args.json:
        print_json(result)
        return
    print_text(render_profile_text(result))


def cmd_get_statements(args: argparse.Namespace) -> None:
    result = get_statements(args.client, args.entity_id, args.include_external_ids, args.lang)
    if args.json:
        print_json({
            "entity_id": args.entity_id,
            "include_external_ids": args.include_external_ids,
            "lang": args.lang,
            "result": result,
        })
        return
    print_text(result)


def cmd_get_statement_values(args: argparse.Namespace) -> None:
    result = get_statement_values(args.client, args.entity_id, args.property_id, args.lang)
    if args.json:
        print_json({
            "entity_id": args.entity_id,
            "property_id": args.property_id,
            "lang": args.lang,
            "result": result,
        })
        return
    print_text(result)


def cmd_hierarchy(args: argparse.Namespace) -> None:
    result = build_hierarchy(args.client, args.entity_id, args.max_depth, args.lang)
    if args.json:
        print_json({
            "entity_id": args.entity_id,
            "max_depth": args.max_depth,
            "lang": args.lang,
            "result": result,
        })
        return
    if result.get("message"):
        print_text(result["message"])
        return
    print_text(json.dumps(result["tree"], indent=2, ensure_ascii=False))


def cmd_execute_sparql(args: argparse.Namespace) -> None:
    positional = [args.query_arg] if args.query_arg else []
    query = resolve_sparql_query(positional, args.query, args.file)
    result = execute_sparql(args.client, query, args.k)
    if args.json:
        print_json({"query": query, "limit": args.k, "result": result})
        return
    if result.get("message"):
        print_text(result["message"])
        return
    print_text(result.get("csv", ""))


def cmd_version(args: argparse.Namespace) -> None:
    info: BuildInfo = args.build_info
    if args.json:
        print_json(info.as_dict())
        return
    print_text(info.render_text())


def _add_search_flags(p: argparse.ArgumentParser, default_limit: int) -> None:
    p.add_argument("query", help="Free-text search query")
    p.add_argument("--lang", default="en", help="Language code for labels/descriptions (default: en)")
    p.add_argument("--limit", type=int, default=default_limit, help=f"Maximum results (default: {default_limit})")
    p.add_argument("--no-vector", action="store_true", help="Disable vector search and use keyword search only")


def build_parser(defaults: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wikidata-cli",
        description="Explore and query Wikidata from your terminal",
        epilog=(
            "Examples:\n"
            "  wikidata-cli search-items \"Douglas Adams\"\n"
            "  wikidata-cli get-statements Q42\n"
            "  wikidata-cli --json execute-sparql 'SELECT ?item WHERE { ?item wdt:P31 wd:Q5 } LIMIT 2'"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--json", action="store_true", help="Write output as JSON")
    parser.add_argument("--timeout", help=f"HTTP timeout for outbound requests, e.g. 15s, 500ms (default: {format_duration(defaults.timeout)})")
    parser.add_argument("--user-agent", help="User-Agent header used for Wikidata services")
    parser.add_argument("--wikidata-api-url", help=f"Wikidata API base URL (default: {defaults.wikidata_api_url})")
    parser.add_argument("--wikidata-query-url", help=f"Wikidata Query Service URL (default: {defaults.wikidata_query_url})")
    parser.add_argument("--textifier-url", help=f"Wikidata textifier API URL (default: {defaults.textifier_url})")
    parser.add_argument("--vector-search-url", help=f"Wikidata vector search API URL (default: {defaults.vector_search_url})")
    parser.add_argument("--vector-api-secret", help="Optional API secret for vector search (or set WD_VECTORDB_API_SECRET)")
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, help="Console log level (or set WIKIDATA_CLI_LOG_LEVEL)")
    parser.add_argument("--verbose", action="store_true", help="Debug logging plus a request metrics summary on stderr")

    subparsers = parser.add_subparsers(dest="command")

    si = subparsers.add_parser("search-items", aliases=["si"], help="Search Wikidata items (QIDs)")
    _add_search_flags(si, 10)
    si.set_defaults(func=cmd_search_items)

    sp = subparsers.add_parser("search-properties", aliases=["sp"], help="Search Wikidata properties (PIDs)")
    _add_search_flags(sp, 10)
    sp.set_defaults(func=cmd_search_properties)

    res = subparsers.add_parser("resolve", help="Disambiguate a name into ranked candidates with confidence hints")
    _add_search_flags(res, 5)
    res.set_defaults(func=cmd_resolve)

    prof = subparsers.add_parser("profile", help="Curated profile of an entity (company, person or place)")
    prof.add_argument("entity_id", help="Item ID, e.g. Q42")
    prof.add_argument("--type", default="company", choices=PROFILE_TYPES, help="Profile type (default: company)")
    prof.add_argument("--lang", default="en", help="Language code for labels/descriptions (default: en)")
    prof.set_defaults(func=cmd_profile)

    st = subparsers.add_parser("get-statements", aliases=["statements"], help="Return direct Wikidata statements for an entity")
    st.add_argument("entity_id", help="Entity ID, e.g. Q42")
    st.add_argument("--include-external-ids", action="store_true", help="Include external identifier statements")
    st.add_argument("--lang", default="en", help="Language code for labels/descriptions (default: en)")
    st.set_defaults(func=cmd_get_statements)

    sv = subparsers.add_parser(
        "get-statement-values",
        aliases=["statement-values", "values"],
        help="Return detailed values, qualifiers, ranks, and references for a statement",
    )
    sv.add_argument("entity_id", help="Entity ID, e.g. Q42")
    sv.add_argument("property_id", help="Property ID, e.g. P106")
    sv.add_argument("--lang", default="en", help="Language code for labels/descriptions (default: en)")
    sv.set_defaults(func=cmd_get_statement_values)

    hi = subparsers.add_parser(
        "get-instance-and-subclass-hierarchy",
        aliases=["hierarchy"],
        help="Return a hierarchy based on P31 (instance of) and P279 (subclass of)",
    )
    hi.add_argument("entity_id", help="Entity ID, e.g. Q42")
    hi.add_argument("--max-depth", type=int, default=5, help="Maximum hierarchy depth (default: 5)")
    hi.add_argument("--lang", default="en", help="Language code for labels/descriptions (default: en)")
    hi.set_defaults(func=cmd_hierarchy)

    sq = subparsers.add_parser("execute-sparql", aliases=["sparql"], help="Execute SPARQL against Wikidata and return semicolon-separated CSV")
    sq.add_argument("query_arg", nargs="?", metavar="query", help="SPARQL query text")
    sq.add_argument("-q", "--query", default="", help="SPARQL query string (alternative to positional query argument)")
    sq.add_argument("--file", default="", help="Path to file containing SPARQL query text")
    sq.add_argument("--k", type=int, default=10, help="Maximum rows to return (default: 10)")
    sq.set_defaults(func=cmd_execute_sparql)

    ver = subparsers.add_parser("version", help="Print build version")
    ver.set_defaults(func=cmd_version)

    return parser


def _configure_logger(args: argparse.Namespace) -> None:
    level = args.log_level or os.getenv("WIKIDATA_CLI_LOG_LEVEL", "WARNING").upper()
    if args.verbose:
        level = "DEBUG"
    if level not in LOG_LEVELS:
        level = "WARNING"

    log_dir = os.getenv("WIKIDATA_CLI_LOG_DIR", "").strip()
    reset_logger()
    get_logger(level=level, log_dir=Path(log_dir) if log_dir else None, enable_file=bool(log_dir))


def main(argv: Optional[List[str]] = None) -> None:
    # Load .env if present (WD_API_URI, WD_VECTORDB_API_SECRET, etc.)
    load_env()
    defaults = default_config()
    build_info = build_info_from_env()

    parser = build_parser(defaults)
    args = parser.parse_args(argv)
    args.build_info = build_info
    _configure_logger(args)
    logger = get_logger()

    if args.version:
        print_text(build_info.render_text())
        return

    if not hasattr(args, "func"):
        parser.print_help()
        return

    try:
        if args.func is not cmd_version:
            args.client = WikidataClient(build_config(args, defaults))
        args.func(args)
    except (WikidataError, ValueError, OSError) as e:
        logger.debug("Command failed", command=args.command, error=str(e))
        raise SystemExit(f"Error: {e}")
    finally:
        if args.verbose:
            logger.log_metrics_summary()


if __name__ == "__main__":
    main()
