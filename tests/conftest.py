"""
Pytest configuration and shared fixtures.
"""

import json
from typing import Any, Callable, Dict, List

import pytest

from wikidata_cli.client import WikidataClient
from wikidata_cli.config import Config
from wikidata_cli.logger import get_logger, reset_logger

API_URL = "https://api.test/w/api.php"
QUERY_URL = "https://query.test/sparql"
TEXTIFIER_URL = "https://textify.test"
VECTOR_URL = "https://vector.test"


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload: Any = None, status_code: int = 200, text: str = None):
        self.status_code = status_code
        body = text if text is not None else json.dumps(payload)
        self.content = body.encode("utf-8")

    def json(self):
        return json.loads(self.content.decode("utf-8"))


class FakeSession:
    """Records GET calls and answers them through a handler(url, params)."""

    def __init__(self, handler: Callable[[str, Dict[str, Any]], Any]):
        self.handler = handler
        self.calls: List[Dict[str, Any]] = []

    def get(self, url, params=None, headers=None, timeout=None):
        call = {
            "url": url,
            "params": dict(params or {}),
            "headers": dict(headers or {}),
            "timeout": timeout,
        }
        self.calls.append(call)
        result = self.handler(url, call["params"])
        if isinstance(result, Exception):
            raise result
        if isinstance(result, FakeResponse):
            return result
        return FakeResponse(result)

    def calls_to(self, prefix: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["url"].startswith(prefix)]


@pytest.fixture(autouse=True)
def quiet_logger():
    """Keep the global logger off the console during tests."""
    reset_logger()
    get_logger(enable_console=False)
    yield
    reset_logger()


@pytest.fixture
def test_config() -> Config:
    return Config(
        wikidata_api_url=API_URL,
        wikidata_query_url=QUERY_URL,
        textifier_url=TEXTIFIER_URL,
        vector_search_url=VECTOR_URL,
        user_agent="wikidata-cli-tests/1.0",
        timeout=5.0,
    )


@pytest.fixture
def make_client(test_config):
    """Build a WikidataClient backed by a FakeSession."""

    def _make(handler, **overrides):
        session = FakeSession(handler)
        cfg = test_config.with_overrides(**overrides) if overrides else test_config
        return WikidataClient(cfg, session=session), session

    return _make


@pytest.fixture
def company_entity() -> Dict[str, Any]:
    """Textifier JSON for a small company."""
    return {
        "QID": "Q999999",
        "label": "Example Company",
        "description": "example holding company",
        "claims": [
            {
                "PID": "P31",
                "property_label": "instance of",
                "values": [
                    {
                        "value": {"QID": "Q4830453", "label": "business"},
                        "rank": "normal",
                        "references": [[{"PID": "P143", "property_label": "imported from Wikimedia project", "values": [{"value": {"QID": "Q328", "label": "English Wikipedia"}}]}]],
                    },
                ],
            },
            {
                "PID": "P17",
                "property_label": "country",
                "values": [
                    {"value": {"QID": "Q334", "label": "Singapore"}, "rank": "normal"},
                ],
            },
            {
                "PID": "P856",
                "property_label": "official website",
                "values": [
                    {"value": "https://example.com", "rank": "normal"},
                ],
            },
        ],
    }
