"""
Test: Airtable pagination and record mapping.
"""
import pytest

from conftest import FakeResponse, FakeSession
from feedback_copilot.core.errors import ConfigurationError, UpstreamError
from feedback_copilot.services.airtable import MISSING_CONFIG_MESSAGE, AirtableClient


@pytest.fixture
def airtable_settings(make_settings):
    return make_settings(airtable_api_key="pat-123", airtable_base_id="appBASE")


def test_missing_config(make_settings):
    client = AirtableClient(make_settings(), session=FakeSession())
    with pytest.raises(ConfigurationError) as exc:
        client.list_homeworks()
    assert exc.value.message == MISSING_CONFIG_MESSAGE
    assert exc.value.status_code == 500


def test_follows_offset(airtable_settings):
    session = FakeSession(
        FakeResponse(200, json_data={"records": [{"id": "r1", "fields": {}}], "offset": "itr2"}),
        FakeResponse(200, json_data={"records": [{"id": "r2", "fields": {}}]}),
    )
    records = AirtableClient(airtable_settings, session=session).list_records("Homework_database")

    assert [r["id"] for r in records] == ["r1", "r2"]
    assert session.calls[0]["url"] == "https://api.airtable.com/v0/appBASE/Homework_database"
    assert session.calls[0]["params"] is None
    assert session.calls[1]["params"] == {"offset": "itr2"}
    assert session.calls[0]["headers"]["Authorization"] == "Bearer pat-123"


def test_homework_mapping(airtable_settings):
    session = FakeSession(FakeResponse(200, json_data={"records": [
        {"id": "r1", "fields": {"Homework_name": "Essay", "Homework_details": "Write 500 words"}},
        {"id": "r2", "fields": {}},
    ]}))
    homeworks = AirtableClient(airtable_settings, session=session).list_homeworks()

    assert homeworks == [
        {"id": "r1", "name": "Essay", "details": "Write 500 words"},
        {"id": "r2", "name": "Untitled", "details": ""},
    ]


def test_profile_mapping(airtable_settings):
    session = FakeSession(FakeResponse(200, json_data={"records": [
        {"id": "p1", "fields": {"Profile": "Beginner", "Recommendations": "Be gentle"}},
    ]}))
    client = AirtableClient(airtable_settings, session=session)

    assert client.list_profiles() == [{"id": "p1", "profile": "Beginner", "recommendations": "Be gentle"}]
    assert session.calls[0]["url"].endswith("/Student_profiles")


def test_error_status_passed_through(airtable_settings):
    session = FakeSession(FakeResponse(403, text="{}", reason="Forbidden"))
    with pytest.raises(UpstreamError) as exc:
        AirtableClient(airtable_settings, session=session).list_homeworks()
    assert exc.value.status_code == 403
    assert exc.value.message == "Failed to fetch from Airtable: Forbidden"
