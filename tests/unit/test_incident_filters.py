"""
Unit tests for the incident search filter builder.

Filters are checked both structurally and by running them against an
in-memory SQLite database.
"""
import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from backend.app.models.incident_orm import IncidentORM
from backend.app.services.incident_filters import (
    SEARCH_PARAMETERS, build_incident_filter, parse_tags,
)


def _incident(title="Database outage", description="Primary down", severity="Low",
              environment="Production", status="Open", tags=()):
    incident = IncidentORM(
        id=str(uuid.uuid4()),
        human_id=f"010124-INC{uuid.uuid4().hex[:6]}",
        title=title,
        description=description,
        severity=severity,
        environment=environment,
        status=status,
        created_by="user-1",
        resolution_details="",
        related_links=[],
        related_incidents=[],
        case_discussion=[],
        created_at=datetime.now(timezone.utc),
    )
    incident.set_tags(list(tags))
    return incident


async def _matching_titles(db_session, params):
    incident_filter = build_incident_filter(params)
    result = await db_session.execute(incident_filter.apply(select(IncidentORM)))
    return sorted(i.title for i in result.scalars().all())


@pytest.mark.parametrize("name", SEARCH_PARAMETERS)
def test_absent_parameter_adds_no_constraint(name):
    """A parameter missing from the input never shows up in the filter."""
    params = {"title": "x", "description": "y", "status": "Open", "environment": "Staging",
              "severity": "High", "tags": "a", "search": "z"}
    del params[name]
    incident_filter = build_incident_filter(params)
    assert name not in incident_filter
    assert len(incident_filter.constraints) == len(SEARCH_PARAMETERS) - 1


def test_empty_input_is_empty_filter():
    assert build_incident_filter({}).is_empty


def test_blank_and_unknown_parameters_ignored():
    incident_filter = build_incident_filter({"title": "   ", "tags": "", "page": "2", "colour": "red"})
    assert incident_filter.is_empty


def test_parse_tags_trims_and_drops_blanks():
    assert parse_tags(" a, b ,,c ,") == {"a", "b", "c"}
    assert parse_tags(",,") == set()
    assert parse_tags(None) == set()


async def test_title_is_case_insensitive_substring(db_session):
    db_session.add_all([_incident(title="foobar"), _incident(title="FOO"), _incident(title="bar")])
    await db_session.flush()

    assert await _matching_titles(db_session, {"title": "Foo"}) == ["FOO", "foobar"]


@pytest.mark.parametrize("term, expected", [
    ("Échec", ["Échec réseau"]),
    ("échec", ["Échec réseau"]),
    ("RÉSEAU", ["Échec réseau"]),
    ("ÜBERLAST", ["ÜBERLAST"]),
    ("überlast", ["ÜBERLAST"]),
])
async def test_case_folding_covers_non_ascii(db_session, term, expected):
    db_session.add_all([_incident(title="Échec réseau"), _incident(title="ÜBERLAST"), _incident(title="plain")])
    await db_session.flush()

    assert await _matching_titles(db_session, {"title": term}) == expected
    assert await _matching_titles(db_session, {"search": term}) == expected


async def test_description_substring(db_session):
    db_session.add_all([
        _incident(title="one", description="Disk FULL on node"),
        _incident(title="two", description="latency spike"),
    ])
    await db_session.flush()

    assert await _matching_titles(db_session, {"description": "full"}) == ["one"]


async def test_like_wildcards_are_literal(db_session):
    db_session.add_all([_incident(title="100% cpu"), _incident(title="1000 cpus")])
    await db_session.flush()

    assert await _matching_titles(db_session, {"title": "100%"}) == ["100% cpu"]
    assert await _matching_titles(db_session, {"title": "_"}) == []


async def test_tags_match_on_any_shared_tag(db_session):
    db_session.add_all([
        _incident(title="shares-b", tags=["b", "c"]),
        _incident(title="only-c", tags=["c"]),
        _incident(title="untagged"),
    ])
    await db_session.flush()

    assert await _matching_titles(db_session, {"tags": "a,b"}) == ["shares-b"]


async def test_exact_fields_are_exact(db_session):
    db_session.add_all([
        _incident(title="prod-high", environment="Production", severity="High"),
        _incident(title="stage-high", environment="Staging", severity="High"),
        _incident(title="prod-low", environment="Production", severity="Low", status="Resolved"),
    ])
    await db_session.flush()

    assert await _matching_titles(db_session, {"severity": "High"}) == ["prod-high", "stage-high"]
    assert await _matching_titles(db_session, {"severity": "high"}) == []
    assert await _matching_titles(db_session, {"environment": "Production", "severity": "High"}) == ["prod-high"]
    assert await _matching_titles(db_session, {"status": "Resolved"}) == ["prod-low"]


async def test_search_matches_severity_alone(db_session):
    db_session.add_all([
        _incident(title="Payment errors", description="checkout failing", severity="Critical"),
        _incident(title="Slow page", description="minor", severity="Low"),
    ])
    await db_session.flush()

    assert await _matching_titles(db_session, {"search": "critical"}) == ["Payment errors"]


async def test_search_covers_every_field(db_session):
    db_session.add_all([
        _incident(title="Kafka lag"),
        _incident(title="t2", description="kafka consumer stuck"),
        _incident(title="t3", tags=["KafkaCluster"]),
        _incident(title="t4", environment="Staging"),
        _incident(title="unrelated"),
    ])
    await db_session.flush()

    assert await _matching_titles(db_session, {"search": "kafka"}) == ["Kafka lag", "t2", "t3"]
    assert await _matching_titles(db_session, {"search": "stag"}) == ["t4"]


async def test_search_is_anded_with_field_constraints(db_session):
    db_session.add_all([
        _incident(title="api down", environment="Production"),
        _incident(title="api slow", environment="Staging"),
    ])
    await db_session.flush()

    assert await _matching_titles(db_session, {"search": "api", "environment": "Staging"}) == ["api slow"]
