from __future__ import annotations

from dataclasses import dataclass

import pytest

from payload_binding.binding.schema import Rule, SchemaError, binding_model, form_field, parse_rules, schema_for
from payload_binding.binding.types import FieldKind
from shapes import BlogPost, EmbedPerson, Person, Primitives


@binding_model
class BadRuleArgument:
    title: str = form_field("title", "MinSize(ten)")


@binding_model
class UnknownRule:
    title: str = form_field("title", "Requried")


@binding_model
class InlineString:
    name: str = form_field("name", inline=True)


@dataclass(frozen=True)
class FrozenShape:
    name: str = ""


def test_fields_follow_declaration_order_with_embedded_first() -> None:
    """Inherited (embedded) fields come first, as declared."""
    names = [f.name for f in schema_for(BlogPost).fields]
    assert names == [
        "title", "content", "id", "ignored", "ratings", "author",
        "coauthor", "header_image", "pictures", "_unexported",
    ]


def test_kinds_are_derived_from_annotations() -> None:
    by_name = {f.name: f for f in schema_for(BlogPost).fields}

    assert by_name["id"].kind is FieldKind.integer
    assert by_name["ratings"].kind is FieldKind.slice
    assert by_name["ratings"].elem is FieldKind.integer
    assert by_name["author"].kind is FieldKind.struct
    assert by_name["author"].model is Person
    assert by_name["coauthor"].kind is FieldKind.pointer
    assert by_name["header_image"].kind is FieldKind.file
    assert by_name["pictures"].kind is FieldKind.file_slice

    assert by_name["ignored"].ignored
    assert not by_name["_unexported"].exported
    assert by_name["ratings"].codec_key == "ratings"
    assert by_name["ratings"].key == "rating"


def test_widths_come_from_markers() -> None:
    by_name = {f.name: f for f in schema_for(Primitives).fields}

    assert (by_name["count"].kind, by_name["count"].bits) == (FieldKind.integer, 64)
    assert (by_name["small"].kind, by_name["small"].bits) == (FieldKind.integer, 8)
    assert (by_name["flags"].kind, by_name["flags"].bits) == (FieldKind.unsigned, 8)
    assert (by_name["ratio"].kind, by_name["ratio"].bits) == (FieldKind.float, 32)
    assert (by_name["score"].kind, by_name["score"].bits) == (FieldKind.float, 64)
    assert by_name["toggles"].elem is FieldKind.boolean


def test_schema_is_cached() -> None:
    assert schema_for(BlogPost) is schema_for(BlogPost)


def test_zero_values_are_explicit_per_kind() -> None:
    zero = schema_for(BlogPost).zero()
    assert zero == BlogPost()
    assert zero.title == ""
    assert zero.id == 0
    assert zero.ratings == []
    assert zero.author == Person()
    assert zero.coauthor is None
    assert zero.header_image is None
    assert schema_for(Primitives).zero().ratio == 0.0


def test_binding_model_gives_fresh_defaults() -> None:
    """Shapes build partially, and mutable zeros are not shared."""
    a, b = BlogPost(id=1), BlogPost()
    assert a.id == 1
    assert a.ratings is not b.ratings
    assert a.author is not b.author
    assert EmbedPerson().person is None


def test_error_name_falls_back_to_attribute_name() -> None:
    by_name = {f.name: f for f in schema_for(BlogPost).fields}
    assert by_name["id"].error_name == "id"
    assert by_name["author"].error_name == "author"


def test_parse_rules() -> None:
    assert parse_rules(["Required;MinSize(10)"], field_name="x") == (Rule("Required"), Rule("MinSize", 10))
    assert parse_rules(["Email", " MaxSize( 3 ) ", ""], field_name="x") == (Rule("Email"), Rule("MaxSize", 3))


@pytest.mark.parametrize("spec", ["MinSize(abc)", "MinSize", "MaxSize(-1)", "Required(1)", "Bogus", "Min Size(1)"])
def test_malformed_rules_are_schema_errors(spec: str) -> None:
    """Malformed rules fail loudly instead of becoming a rule with argument `0`."""
    with pytest.raises(SchemaError):
        parse_rules([spec], field_name="x")


@pytest.mark.parametrize("model", [BadRuleArgument, UnknownRule, InlineString, FrozenShape, int])
def test_invalid_shapes_fail_at_derivation(model: type) -> None:
    with pytest.raises(SchemaError):
        schema_for(model)
