"""
Tests for the command-line entry point.
"""

import json

import pytest
import requests

from wikidata_cli import app
from wikidata_cli.client import WikidataClient
from wikidata_cli.resolve import ResolveCandidate, ResolveResponse
from wikidata_cli.search import SearchResponse, SearchResult

from conftest import API_URL, QUERY_URL, VECTOR_URL, FakeResponse, FakeSession

ENV_VARS = [
    "WD_API_URI", "WD_QUERY_URI", "TEXTIFER_URI", "TEXTIFIER_URI", "VECTOR_SEARCH_URI",
    "WD_VECTORDB_API_SECRET", "USER_AGENT", "REQUEST_TIMEOUT_SECONDS",
    "WIKIDATA_CLI_VERSION", "WIKIDATA_CLI_COMMIT", "WIKIDATA_CLI_DATE",
    "WIKIDATA_CLI_LOG_LEVEL", "WIKIDATA_CLI_LOG_DIR",
]


@pytest.fixture(autouse=True)
def clean_env(tmp_path, monkeypatch):
    """Run every command from an empty directory with no service overrides."""
    monkeypatch.chdir(tmp_path)
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture
def captured_calls(monkeypatch):
    """Replace capability functions in app with recorders."""
    calls = {}

    def recorder(name, result):
        def fake(client, *args):
            calls[name] = {"client": client, "args": args}
            return result
        monkeypatch.setattr(app, name, fake)

    return calls, recorder


class TestSearchCommands:
    def test_search_items_text(self, captured_calls, capsys):
        calls, recorder = captured_calls
        recorder("search_items", SearchResponse("vector", [SearchResult("Q42", "Douglas Adams", "English writer")]))

        app.main(["search-items", "Douglas Adams", "--limit", "3", "--no-vector"])

        assert capsys.readouterr().out == "Q42: Douglas Adams — English writer\n"
        assert calls["search_items"]["args"] == ("Douglas Adams", "en", 3, True)

    def test_search_properties_alias_json_empty(self, captured_calls, capsys):
        _, recorder = captured_calls
        recorder("search_properties", SearchResponse("keyword", []))

        app.main(["--json", "sp", "instance of", "--lang", "de"])

        payload = json.loads(capsys.readouterr().out)
        assert payload == {
            "query": "instance of",
            "lang": "de",
            "limit": 10,
            "source": "keyword",
            "results": [],
            "message": "No matching Wikidata properties found.",
        }

    def test_resolve_json(self, captured_calls, capsys):
        calls, recorder = captured_calls
        recorder("search_items", SearchResponse("keyword", [SearchResult("Q113465975", "Hartree", "commodity trading company")]))

        app.main(["--json", "resolve", "Hartree"])

        payload = json.loads(capsys.readouterr().out)
        assert calls["search_items"]["args"][2] == 5
        assert payload["source"] == "keyword"
        assert payload["candidates"] == [{
            "rank": 1,
            "id": "Q113465975",
            "label": "Hartree",
            "description": "commodity trading company",
            "confidence": "high",
            "hints": ["exact label match", "top search result"],
        }]
        assert "message" not in payload

    def test_resolve_text(self, monkeypatch, capsys):
        monkeypatch.setattr(app, "search_items", lambda *a: SearchResponse("keyword", []))
        monkeypatch.setattr(app, "resolve", lambda q, r: ResolveResponse("keyword", [
            ResolveCandidate(1, "Q1", "One", "", "low", []),
        ]))

        app.main(["resolve", "one"])

        assert capsys.readouterr().out == "1. Q1: One [low confidence]\n"


class TestEntityCommands:
    def test_get_statements_json(self, captured_calls, capsys):
        calls, recorder = captured_calls
        recorder("get_statements", "Douglas Adams (Q42): instance of (P31): human (Q5)")

        app.main(["--json", "statements", "Q42", "--include-external-ids"])

        assert json.loads(capsys.readouterr().out) == {
            "entity_id": "Q42",
            "include_external_ids": True,
            "lang": "en",
            "result": "Douglas Adams (Q42): instance of (P31): human (Q5)",
        }
        assert calls["get_statements"]["args"] == ("Q42", True, "en")

    def test_get_statement_values_text(self, captured_calls, capsys):
        calls, recorder = captured_calls
        recorder("get_statement_values", "No statement found for Q42 with property P9")

        app.main(["values", "Q42", "P9"])

        assert capsys.readouterr().out == "No statement found for Q42 with property P9\n"
        assert calls["get_statement_values"]["args"] == ("Q42", "P9", "en")

    def test_hierarchy_text_is_indented_json(self, captured_calls, capsys):
        _, recorder = captured_calls
        recorder("build_hierarchy", {"tree": {"result": "human (Q5)"}})

        app.main(["hierarchy", "Q5", "--max-depth", "0"])

        assert json.loads(capsys.readouterr().out) == {"result": "human (Q5)"}

    def test_hierarchy_not_found_text(self, captured_calls, capsys):
        _, recorder = captured_calls
        recorder("build_hierarchy", {"message": "Entity Q0 not found"})

        app.main(["get-instance-and-subclass-hierarchy", "Q0"])

        assert capsys.readouterr().out == "Entity Q0 not found\n"

    def test_profile_type_flag(self, captured_calls, capsys):
        calls, recorder = captured_calls
        recorder("get_profile", {"message": "Entity Q0 not found"})

        app.main(["profile", "Q0", "--type", "person"])

        assert calls["get_profile"]["args"] == ("Q0", "person", "en")
        assert capsys.readouterr().out == "Entity Q0 not found\n"


class TestSparqlCommand:
    def test_csv_output(self, captured_calls, capsys):
        calls, recorder = captured_calls
        recorder("execute_sparql", {"vars": ["item"], "rows": [{"item": "Q1"}], "csv": ";item\n0;Q1\n"})

        app.main(["sparql", "SELECT ?item {}", "--k", "3"])

        assert capsys.readouterr().out == ";item\n0;Q1\n"
        assert calls["execute_sparql"]["args"] == ("SELECT ?item {}", 3)

    def test_query_from_file(self, captured_calls, tmp_path, capsys):
        calls, recorder = captured_calls
        recorder("execute_sparql", {"message": "bad query"})
        (tmp_path / "q.rq").write_text("SELECT 1", encoding="utf-8")

        app.main(["execute-sparql", "--file", "q.rq"])

        assert calls["execute_sparql"]["args"] == ("SELECT 1", 10)
        assert capsys.readouterr().out == "bad query\n"

    def test_missing_query_is_an_error(self):
        with pytest.raises(SystemExit) as excinfo:
            app.main(["sparql"])

        assert excinfo.value.code == "Error: provide a query as an argument, via --query, or via --file"


class TestGlobalBehaviour:
    def test_flags_reach_client_config(self, captured_calls):
        calls, recorder = captured_calls
        recorder("get_statements", "x")

        app.main([
            "--timeout", "2s",
            "--textifier-url", "https://textify.example",
            "--user-agent", "tester/1.0",
            "statements", "Q1",
        ])

        cfg = calls["get_statements"]["client"].config
        assert cfg.timeout == 2.0
        assert cfg.textifier_url == "https://textify.example"
        assert cfg.user_agent == "tester/1.0"

    def test_environment_reaches_client_config(self, captured_calls, monkeypatch):
        calls, recorder = captured_calls
        recorder("get_statements", "x")
        monkeypatch.setenv("TEXTIFIER_URI", "https://env-textify.example")
        monkeypatch.setenv("WD_VECTORDB_API_SECRET", "s3cret")

        app.main(["statements", "Q1"])

        cfg = calls["get_statements"]["client"].config
        assert cfg.textifier_url == "https://env-textify.example"
        assert cfg.vector_api_secret == "s3cret"

    def test_invalid_url_is_an_error(self):
        with pytest.raises(SystemExit) as excinfo:
            app.main(["--wikidata-api-url", "not a url", "statements", "Q1"])

        assert str(excinfo.value.code).startswith("Error: invalid wikidata api url")

    def test_invalid_timeout_is_an_error(self):
        with pytest.raises(SystemExit) as excinfo:
            app.main(["--timeout", "soon", "statements", "Q1"])

        assert excinfo.value.code == "Error: invalid duration: soon"

    def test_capability_error_is_reported(self, monkeypatch):
        def failing(*args):
            raise ValueError("entity ID cannot be empty")

        monkeypatch.setattr(app, "get_statements", failing)

        with pytest.raises(SystemExit) as excinfo:
            app.main(["statements", " "])

        assert excinfo.value.code == "Error: entity ID cannot be empty"

    def test_version_flag(self, monkeypatch, capsys):
        monkeypatch.setenv("WIKIDATA_CLI_VERSION", "9.9.9")

        app.main(["--version"])

        assert capsys.readouterr().out == "9.9.9\n"

    def test_version_command_json(self, monkeypatch, capsys):
        monkeypatch.setenv("WIKIDATA_CLI_VERSION", "9.9.9")
        monkeypatch.setenv("WIKIDATA_CLI_COMMIT", "abc123")

        app.main(["--json", "version"])

        assert json.loads(capsys.readouterr().out) == {"version": "9.9.9", "commit": "abc123", "date": ""}

    def test_no_command_prints_help(self, capsys):
        app.main([])

        assert "usage: wikidata-cli" in capsys.readouterr().out

    def test_verbose_prints_metrics_to_stderr(self, captured_calls, capsys):
        _, recorder = captured_calls
        recorder("get_statements", "x")

        app.main(["--verbose", "statements", "Q1"])

        captured = capsys.readouterr()
        assert captured.out == "x\n"
        assert "=== Request Metrics ===" in captured.err

    def test_env_file_is_loaded(self, tmp_path, captured_calls, monkeypatch):
        calls, recorder = captured_calls
        recorder("get_statements", "x")
        (tmp_path / ".env").write_text("WD_QUERY_URI=https://query.example/sparql\n", encoding="utf-8")

        app.main(["statements", "Q1"])

        cfg = calls["get_statements"]["client"].config
        assert cfg.wikidata_query_url == "https://query.example/sparql"


class TestSoftFailuresStayQuiet:
    """Expected remote failures must not print log lines at the default level."""

    @pytest.fixture
    def fake_remote(self, monkeypatch):
        def install(handler):
            session = FakeSession(handler)
            monkeypatch.setattr(app, "WikidataClient", lambda cfg: WikidataClient(cfg, session=session))
            return session

        return install

    @pytest.mark.parametrize("vector_failure", [
        FakeResponse(status_code=503, text="unavailable"),
        requests.exceptions.Timeout("timed out"),
    ])
    def test_vector_fallback_is_silent(self, fake_remote, capsys, vector_failure):
        def handler(url, params):
            if url.startswith(VECTOR_URL):
                return vector_failure
            return {"search": [{"id": "Q42", "label": "Douglas Adams", "description": "writer"}]}

        fake_remote(handler)

        app.main(["--vector-search-url", VECTOR_URL, "--wikidata-api-url", API_URL, "search-items", "Douglas Adams"])

        captured = capsys.readouterr()
        assert captured.out == "Q42: Douglas Adams — writer\n"
        assert captured.err == ""

    def test_resolve_fallback_is_silent(self, fake_remote, capsys):
        def handler(url, params):
            if url.startswith(VECTOR_URL):
                return FakeResponse(status_code=401, text="missing secret")
            return {"search": [{"id": "Q42", "label": "Douglas Adams", "description": "writer"}]}

        fake_remote(handler)

        app.main(["--vector-search-url", VECTOR_URL, "--wikidata-api-url", API_URL, "resolve", "Douglas Adams"])

        captured = capsys.readouterr()
        assert captured.out.startswith("1. Q42: Douglas Adams — writer [high confidence")
        assert captured.err == ""

    def test_sparql_bad_request_is_silent(self, fake_remote, capsys):
        fake_remote(lambda url, params: FakeResponse(status_code=400, text="Lexical error at line 1\tat com.bigdata.Foo"))

        app.main(["--wikidata-query-url", QUERY_URL, "sparql", "SELECT {"])

        captured = capsys.readouterr()
        assert captured.out == "Lexical error at line 1\n"
        assert captured.err == ""

    def test_verbose_still_shows_request_failures(self, fake_remote, capsys):
        fake_remote(lambda url, params: FakeResponse(status_code=400, text="Lexical error"))

        app.main(["--verbose", "--wikidata-query-url", QUERY_URL, "sparql", "SELECT {"])

        assert "sparql request failed" in capsys.readouterr().err
