"""
Process-wide configuration for the Wikidata services.

Defaults come from the environment once at startup; command-line flags
override them. The resulting Config is immutable and passed explicitly.
"""

import math
import os
import re
from dataclasses import dataclass, replace
from typing import Mapping, Optional
from urllib.parse import urlparse

DEFAULT_WIKIDATA_API_URL = "https://www.wikidata.org/w/api.php"
DEFAULT_WIKIDATA_QUERY_URL = "https://query.wikidata.org/sparql"
DEFAULT_TEXTIFIER_URL = "https://wd-textify.wmcloud.org"
DEFAULT_VECTOR_SEARCH_URL = "https://wd-vectordb.wmcloud.org"
DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_USER_AGENT = "wikidata-cli/0.1 (+https://github.com/osolmaz/wd-cli)"

_DURATION_RE = re.compile(r"^(\d+(?:\.\d+)?)(ms|s|m|h)?$", re.IGNORECASE)
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


@dataclass(frozen=True)
class Config:
    wikidata_api_url: str = DEFAULT_WIKIDATA_API_URL
    wikidata_query_url: str = DEFAULT_WIKIDATA_QUERY_URL
    textifier_url: str = DEFAULT_TEXTIFIER_URL
    vector_search_url: str = DEFAULT_VECTOR_SEARCH_URL
    vector_api_secret: str = ""
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def with_overrides(self, **overrides) -> "Config":
        """Return a copy where every non-blank override replaces the default."""
        clean = {}
        for key, value in overrides.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() == "" and key != "vector_api_secret":
                continue
            clean[key] = value.strip() if isinstance(value, str) else value
        return replace(self, **clean)


def first_non_empty(*values: Optional[str]) -> str:
    for value in values:
        if value and value.strip() != "":
            return value.strip()
    return ""


def _parse_timeout_seconds(value: Optional[str]) -> Optional[float]:
    if not value or value.strip() == "":
        return None
    try:
        parsed = float(value.strip())
    except ValueError:
        return None
    if not math.isfinite(parsed) or parsed <= 0:
        return None
    return parsed


def default_config(env: Optional[Mapping[str, str]] = None) -> Config:
    """Build the default Config from environment variables."""
    if env is None:
        env = os.environ

    timeout = _parse_timeout_seconds(env.get("REQUEST_TIMEOUT_SECONDS"))
    return Config(
        wikidata_api_url=first_non_empty(env.get("WD_API_URI"), DEFAULT_WIKIDATA_API_URL),
        wikidata_query_url=first_non_empty(env.get("WD_QUERY_URI"), DEFAULT_WIKIDATA_QUERY_URL),
        # TEXTIFER_URI (sic) takes precedence over the corrected spelling.
        textifier_url=first_non_empty(
            env.get("TEXTIFER_URI"),
            env.get("TEXTIFIER_URI"),
            DEFAULT_TEXTIFIER_URL,
        ),
        vector_search_url=first_non_empty(env.get("VECTOR_SEARCH_URI"), DEFAULT_VECTOR_SEARCH_URL),
        vector_api_secret=first_non_empty(env.get("WD_VECTORDB_API_SECRET")),
        user_agent=first_non_empty(env.get("USER_AGENT"), DEFAULT_USER_AGENT),
        timeout=timeout if timeout is not None else DEFAULT_TIMEOUT_SECONDS,
    )


def _valid_url(value: str) -> bool:
    p = urlparse(value)
    return bool(p.scheme and p.netloc)


def validate_config(cfg: Config) -> None:
    """Raise ValueError if the configuration cannot be used to build a client."""
    urls = [
        ("wikidata api", cfg.wikidata_api_url),
        ("wikidata query", cfg.wikidata_query_url),
        ("textifier", cfg.textifier_url),
        ("vector search", cfg.vector_search_url),
    ]
    for name, url in urls:
        if not _valid_url(url):
            raise ValueError(f"invalid {name} url: {url!r}")

    if cfg.timeout <= 0:
        raise ValueError("timeout must be greater than zero")

    if cfg.user_agent.strip() == "":
        raise ValueError("user agent cannot be empty")


def parse_duration(value: str) -> float:
    """
    Parse a duration such as "15s", "250ms", "2m" or "1h" into seconds.

    A bare number is read as milliseconds.
    """
    text = value.strip()
    if text == "":
        raise ValueError("duration cannot be empty")

    match = _DURATION_RE.match(text)
    if not match:
        raise ValueError(f"invalid duration: {value}")

    amount = float(match.group(1))
    unit = (match.group(2) or "ms").lower()
    return amount * _UNIT_SECONDS[unit]


def format_duration(seconds: float) -> str:
    ms = round(seconds * 1000)
    if ms % 3_600_000 == 0:
        return f"{ms // 3_600_000}h"
    if ms % 60_000 == 0:
        return f"{ms // 60_000}m"
    if ms % 1000 == 0:
        return f"{ms // 1000}s"
    return f"{ms}ms"
