"""Unit tests for core/convert.py"""

from datetime import date

import pytest

from mdsite.core.convert import ContentConverter, parse_date
from mdsite.core.models import RawContentItem
from mdsite.core.schema import Cardinality, ContentDefinition
from mdsite.core.values import Value, ValueKind


def raw(origin, front_matter=None, slug=None):
    return RawContentItem(
        origin_path=origin,
        slug=slug if slug is not None else origin,
        front_matter=front_matter or {},
        body="",
        last_modified=5.0,
    )


# --- content type resolution ---

def test_explicit_type_wins(converter):
    assert converter.resolve_definition(raw("authors/x", {"type": "guide"})).id == "guide"


def test_path_prefix_match(converter):
    assert converter.resolve_definition(raw("guides/intro")).id == "guide"
    assert converter.resolve_definition(raw("guides")).id == "guide"


def test_prefix_must_match_whole_segment(converter):
    assert converter.resolve_definition(raw("guidesx/intro")).id == "page"


def test_longest_prefix_wins():
    c = ContentConverter([
        ContentDefinition(id="doc", paths=["docs"]),
        ContentDefinition(id="api", paths=["docs/api"]),
    ])
    assert c.resolve_definition(raw("docs/api/index")).id == "api"
    assert c.resolve_definition(raw("docs/intro")).id == "doc"


def test_unknown_explicit_type_reports_and_falls_back(converter):
    d = converter.resolve_definition(raw("guides/a", {"type": "nope"}))
    assert d.id == "guide"
    assert converter.issues[0].field == "type"


def test_no_definition_skips_item():
    c = ContentConverter([ContentDefinition(id="doc", paths=["docs"])])
    assert c.convert(raw("other/a")) is None
    assert "no matching content type" in c.issues[0].message


# --- properties ---

def test_converts_typed_properties(make_content):
    c = make_content("guides/intro", {"title": "Intro", "order": 2})
    assert c.properties["title"] == Value.of("Intro")
    assert c.properties["order"] == Value.of(2)
    assert c.id == "intro"
    assert c.slug == "guides/intro"


def test_missing_required_is_null_with_issue(converter, make_content):
    c = make_content("guides/intro", {})
    assert c.properties["title"].is_null
    assert converter.issues[0].field == "title"


def test_missing_optional_is_omitted(make_content):
    c = make_content("guides/intro", {"title": "x"})
    assert "order" not in c.properties


def test_default_used_when_missing():
    d = ContentDefinition.model_validate({
        "id": "post",
        "default": True,
        "properties": {"featured": {"type": "bool", "required": False, "default": True}},
    })
    c = ContentConverter([d]).convert(raw("a"))
    assert c.properties["featured"] == Value.of(True)


def test_kind_mismatch_reported_and_kept(converter, make_content):
    c = make_content("guides/intro", {"title": "x", "order": "second"})
    assert c.properties["order"] == Value.of("second")
    assert "expected int" in converter.issues[0].message


def test_double_accepts_int():
    d = ContentDefinition.model_validate({"id": "p", "default": True, "properties": {"score": {"type": "double"}}})
    c = ContentConverter([d]).convert(raw("a", {"score": 3}))
    assert c.properties["score"] == Value.of(3.0)


@pytest.mark.parametrize("value,fmt,expected", [
    ("2024-01-02", None, 1704153600.0),
    ("02/01/2024", "%d/%m/%Y", 1704153600.0),
    (date(2024, 1, 2), None, 1704153600.0),
])
def test_date_properties(value, fmt, expected):
    schema = {"type": "date"} if fmt is None else {"type": "date", "dateFormat": fmt}
    d = ContentDefinition.model_validate({"id": "p", "default": True, "properties": {"when": schema}})
    c = ContentConverter([d]).convert(raw("a", {"when": value}))
    assert c.properties["when"] == Value.timestamp(expected)


def test_site_date_format_applies():
    d = ContentDefinition.model_validate({"id": "p", "default": True, "properties": {"when": {"type": "date"}}})
    c = ContentConverter([d], date_format="%Y/%m/%d").convert(raw("a", {"when": "2024/01/02"}))
    assert c.properties["when"].kind is ValueKind.timestamp


def test_invalid_date_is_omitted_with_issue():
    d = ContentDefinition.model_validate({"id": "p", "default": True, "properties": {"when": {"type": "date"}}})
    conv = ContentConverter([d])
    c = conv.convert(raw("a", {"when": "yesterday"}))
    assert "when" not in c.properties
    assert "invalid date" in conv.issues[0].message


def test_parse_date_failure_is_none():
    assert parse_date("2024-13-45") is None


# --- relations and residual fields ---

def test_relations_read_identifiers(make_content):
    c = make_content("guides/intro", {"title": "x", "category": "tools", "authors": ["a", "b"]})
    assert c.relations["category"].identifiers == ["tools"]
    assert c.relations["category"].cardinality is Cardinality.one
    assert c.relations["authors"].identifiers == ["a", "b"]


@pytest.mark.parametrize("cardinality,value", [
    (Cardinality.one, ["a"]),
    (Cardinality.one, 3),
    (Cardinality.many, "a"),
    (Cardinality.many, ["a", 1]),
])
def test_unusable_relation_values_are_empty(cardinality, value):
    assert ContentConverter.relation_identifiers(cardinality, value) == []


def test_residual_keys_are_user_defined(make_content):
    c = make_content("guides/intro", {"title": "x", "template": "wide", "type": "guide", "slug": "start"})
    assert c.user_defined == {"template": Value.of("wide")}
    assert c.slug == "start"


def test_front_matter_id_overrides(make_content):
    assert make_content("guides/[01]intro", {"title": "x"}).id == "intro"
    assert make_content("guides/intro", {"title": "x", "id": "custom"}).id == "custom"


def test_query_fields_flatten_relations(make_content):
    c = make_content("guides/intro", {"title": "x", "authors": ["a"]}, last_modified=7.0)
    fields = c.query_fields
    assert fields["authors"] == Value.of(["a"])
    assert fields["category"] == Value.of([])
    assert fields["lastUpdate"] == Value.timestamp(7.0)
    assert fields["iterator"] == Value.of(False)
    assert fields["id"] == Value.of("intro")
