"""
Tests for curated entity profiles.
"""

from datetime import datetime, timezone

import pytest

from wikidata_cli.profile import (
    PROFILE_FIELDS,
    empty_profile_fields,
    get_profile,
    profile_field_definitions,
    profile_fields_from_entity,
    profile_property_ids,
)

from conftest import TEXTIFIER_URL

FIXED_NOW = datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)


class TestGetProfile:
    """End to end profile aggregation against a fake textifier."""

    def test_company_profile(self, make_client, company_entity):
        client, session = make_client(lambda url, params: {"Q999999": company_entity})

        result = get_profile(client, "Q999999", "company", "en", now=FIXED_NOW)

        assert result["entity_id"] == "Q999999"
        assert result["profile_type"] == "company"
        assert result["lang"] == "en"
        assert result["label"] == "Example Company"
        assert result["description"] == "example holding company"
        assert result["fetched_at"] == "2024-05-01T12:30:45.123Z"
        assert "message" not in result

        instance_of = result["fields"]["instance_of"]["values"]
        assert instance_of == [{
            "display": "business",
            "value": "business",
            "entity_id": "Q4830453",
            "source_property_id": "P31",
            "source_property_label": "instance of",
            "rank": "normal",
            "reference_count": 1,
        }]
        assert result["fields"]["country"]["values"][0]["display"] == "Singapore"
        website = result["fields"]["official_website"]["values"][0]
        assert website["value"] == "https://example.com"
        assert "entity_id" not in website
        assert result["fields"]["industry"]["values"] == []

    def test_single_request_with_all_options(self, make_client, company_entity):
        client, session = make_client(lambda url, params: {"Q999999": company_entity})

        get_profile(client, " Q999999 ", "company")

        assert len(session.calls) == 1
        params = session.calls[0]["params"]
        assert params["id"] == "Q999999"
        assert params["pid"] == ",".join(profile_property_ids(PROFILE_FIELDS["company"]))
        for option in ("external_ids", "all_ranks", "references", "qualifiers"):
            assert params[option] == "true"

    def test_sources(self, make_client, company_entity):
        client, _ = make_client(lambda url, params: {"Q999999": company_entity})

        result = get_profile(client, "Q999999", "place")

        assert result["sources"] == {
            "provider": TEXTIFIER_URL,
            "property_ids": profile_property_ids(PROFILE_FIELDS["place"]),
        }

    def test_not_found(self, make_client):
        client, _ = make_client(lambda url, params: {})

        result = get_profile(client, "Q0", "person", now=FIXED_NOW)

        assert result["message"] == "Entity Q0 not found"
        assert result["label"] == ""
        assert result["description"] == ""
        assert set(result["fields"]) == {d.key for d in PROFILE_FIELDS["person"]}
        assert all(f["values"] == [] for f in result["fields"].values())

    def test_unsupported_type(self, make_client):
        client, session = make_client(lambda url, params: {})

        with pytest.raises(ValueError, match="unsupported profile type: band"):
            get_profile(client, "Q1", "band")
        assert session.calls == []

    def test_blank_id(self, make_client):
        client, _ = make_client(lambda url, params: {})

        with pytest.raises(ValueError, match="entity ID cannot be empty"):
            get_profile(client, "  ")


class TestProfileFields:
    def test_duplicates_collapse_but_rank_differences_stay(self):
        entity = {
            "claims": [
                {
                    "PID": "P17",
                    "property_label": "country",
                    "values": [
                        {"value": {"QID": "Q334", "label": "Singapore"}, "rank": "normal"},
                        {"value": {"QID": "Q334", "label": "Singapore"}, "rank": "normal"},
                        {"value": {"QID": "Q334", "label": "Singapore"}, "rank": "preferred"},
                    ],
                },
                {
                    "PID": "P17",
                    "values": [{"value": {"QID": "Q334", "label": "Singapore"}}],
                },
            ]
        }

        fields = profile_fields_from_entity(entity, profile_field_definitions("company"))

        assert [v["rank"] for v in fields["country"]["values"]] == ["normal", "preferred"]

    def test_blank_values_are_dropped_and_labels_fall_back(self):
        entity = {
            "claims": [
                {"PID": "P571", "values": [{"value": ""}, {"value": {"time": "+1999-01-01"}}]},
                {"PID": "P112", "values": [{"value": {"QID": "Q5", "label": ""}}]},
                {"PID": "", "values": [{"value": "ignored"}]},
            ]
        }

        fields = profile_fields_from_entity(entity, profile_field_definitions("company"))

        inception = fields["inception"]["values"]
        assert len(inception) == 1
        assert inception[0]["display"] == "time=+1999-01-01"
        assert inception[0]["source_property_label"] == "P571"
        assert fields["founded_by"]["values"][0]["display"] == "Q5"

    def test_field_order_matches_definitions(self):
        definitions = profile_field_definitions("person")

        assert list(empty_profile_fields(definitions)) == [d.key for d in definitions]

    def test_property_union_keeps_first_occurrence(self):
        ids = profile_property_ids(PROFILE_FIELDS["company"])

        assert ids[0] == "P31"
        assert len(ids) == len(set(ids))
