import pytest

from ..exceptions import UnknownFieldError, UnknownResourceTypeError
from ..params import Params
from .testing import build_registry


def test_fields_for():
    target = Params(fields={"articles": ["title", "title", "author"]})
    assert target.fields_for("articles") == {"title", "author"}
    assert target.fields_for("people") is None
    assert Params().fields == {}
    assert Params().relationship_data == {}


def test_wants_data():
    target = Params(relationship_data={"author": True, "comments": False})
    assert target.wants_data("articles", "author")
    assert not target.wants_data("articles", "comments")
    assert not target.wants_data("articles", "tags")
    assert target.wants_data("articles", "comments", {"articles": ["comments"]})
    assert not target.wants_data("people", "articles", {"articles": ["articles"]})


def test_validate():
    registry = build_registry()
    Params(fields={"articles": {"title", "author"}, "people": set()}).validate(registry)

    with pytest.raises(UnknownFieldError) as e:
        Params(fields={"articles": {"title", "zzz", "aaa"}}).validate(registry)
    assert e.value.type_name == "articles"
    assert e.value.names == ["aaa", "zzz"]
    assert str(e.value) == '"articles" has no field named aaa or zzz'

    with pytest.raises(UnknownResourceTypeError):
        Params(fields={"nothings": {"title"}}).validate(registry)
