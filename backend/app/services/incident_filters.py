"""
Incident search filter construction.

Turns untrusted query-string parameters into SQLAlchemy clauses over
``IncidentORM``. Absent or blank parameters add nothing, unknown parameters
are ignored, and malformed input degrades to "no constraint" instead of an
error. The builder never touches the database.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Set

from sqlalchemy import Select, String, and_, func, or_, true
from sqlalchemy.sql.elements import ColumnElement

from backend.app.models.incident_orm import IncidentORM, IncidentTagORM

# Parameter -> column for case-insensitive substring matching
_SUBSTRING_FIELDS = {
    "title": IncidentORM.title,
    "description": IncidentORM.description,
}

# Parameter -> column for exact matching
_EXACT_FIELDS = {
    "status": IncidentORM.status,
    "environment": IncidentORM.environment,
    "severity": IncidentORM.severity,
}

SEARCH_PARAMETERS = tuple(_SUBSTRING_FIELDS) + tuple(_EXACT_FIELDS) + ("tags", "search")


@dataclass
class IncidentFilter:
    """Named constraints that are AND-ed together when applied."""

    constraints: Dict[str, ColumnElement] = field(default_factory=dict)

    def __contains__(self, name: str) -> bool:
        return name in self.constraints

    @property
    def is_empty(self) -> bool:
        return not self.constraints

    def where_clause(self) -> ColumnElement:
        if not self.constraints:
            return true()
        return and_(*self.constraints.values())

    def apply(self, statement: Select) -> Select:
        if not self.constraints:
            return statement
        return statement.where(self.where_clause())


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _icontains(column, term: str) -> ColumnElement:
    # autoescape makes % and _ in user input literal
    return func.lower(column, type_=String).contains(term.lower(), autoescape=True)


def parse_tags(raw: Any) -> Set[str]:
    """Split a comma-separated tag list, dropping blanks."""
    text = _clean(raw)
    if text is None:
        return set()
    return {tag.strip() for tag in text.split(",") if tag.strip()}


def search_clause(term: str) -> ColumnElement:
    """OR-group matching ``term`` in any searchable field."""
    return or_(
        _icontains(IncidentORM.title, term),
        _icontains(IncidentORM.description, term),
        IncidentORM.tag_entries.any(_icontains(IncidentTagORM.tag, term)),
        _icontains(IncidentORM.severity, term),
        _icontains(IncidentORM.environment, term),
    )


def build_incident_filter(params: Mapping[str, Any]) -> IncidentFilter:
    """Build the filter for ``GET /incidents/search``."""
    incident_filter = IncidentFilter()
    constraints = incident_filter.constraints

    for name, column in _SUBSTRING_FIELDS.items():
        value = _clean(params.get(name))
        if value is not None:
            constraints[name] = _icontains(column, value)

    for name, column in _EXACT_FIELDS.items():
        value = _clean(params.get(name))
        if value is not None:
            constraints[name] = column == value

    tags = parse_tags(params.get("tags"))
    if tags:
        constraints["tags"] = IncidentORM.tag_entries.any(IncidentTagORM.tag.in_(sorted(tags)))

    term = _clean(params.get("search"))
    if term is not None:
        constraints["search"] = search_clause(term)

    return incident_filter
