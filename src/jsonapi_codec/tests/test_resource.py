import datetime

import pytest

from ..exceptions import (
    InvalidAttributeValueError,
    InvalidStructureError,
    RelationshipCardinalityError,
    UnknownAttributeError,
    UnknownRelationshipError,
)
from ..models import (
    AttributeKind,
    ResourceAttributeDescriptor,
    ResourceDescriptor,
    ResourceToManyRelationshipDescriptor,
    ResourceToOneRelationshipDescriptor,
)


@pytest.fixture
def descr() -> ResourceDescriptor:
    return ResourceDescriptor(
        name="articles",
        attributes=[
            ResourceAttributeDescriptor(str, "title"),
            ResourceAttributeDescriptor(AttributeKind.INT8, "rating"),
            ResourceAttributeDescriptor(AttributeKind.UINT16, "views"),
            ResourceAttributeDescriptor(bool, "draft"),
            ResourceAttributeDescriptor(datetime.datetime, "published_at", allow_null=True),
        ],
        relationships=[
            ResourceToOneRelationshipDescriptor("people", "author"),
            ResourceToManyRelationshipDescriptor("comments", "comments"),
        ],
    )


class TestGenericResource:
    @pytest.fixture
    def target_class(self):
        from ..resource import GenericResource

        return GenericResource

    def test_initial_values(self, target_class, descr):
        target = target_class(descr)
        assert target.get_id() == ""
        assert target.get_type() == "articles"
        assert target.get("title") == ""
        assert target.get("rating") == 0
        assert target.get("draft") is False
        assert target.get("published_at") is None
        assert target.get_to_one("author") == ""
        assert target.get_to_many("comments") == []
        assert list(target.attrs()) == ["title", "rating", "views", "draft", "published_at"]
        assert list(target.rels()) == ["author", "comments"]

    def test_set_get(self, target_class, descr):
        target = target_class(descr, "1")
        target.set("title", "A")
        target.set("rating", -128)
        target.set("views", 65535)
        target.set("draft", True)
        ts = datetime.datetime(2020, 1, 1, tzinfo=datetime.timezone.utc)
        target.set("published_at", ts)
        target.set_to_one("author", "9")
        target.set_to_many("comments", iter(["1", "2"]))
        assert target.get("title") == "A"
        assert target.get("rating") == -128
        assert target.get("views") == 65535
        assert target.get("draft") is True
        assert target.get("published_at") == ts
        assert target.get_to_one("author") == "9"
        assert target.get_to_many("comments") == ["1", "2"]
        assert target.identity() == ("1", "articles")
        assert target.identifier().id == "1"
        assert target.identifier().type == "articles"
        target.set_to_one("author", None)
        assert target.get_to_one("author") == ""
        assert repr(target) == "GenericResource(type='articles', id='1')"

    @pytest.mark.parametrize(
        "name, value",
        [
            ("title", 1),
            ("title", None),
            ("rating", 128),
            ("rating", "1"),
            ("rating", True),
            ("views", -1),
            ("views", 65536),
            ("draft", 1),
            ("published_at", "2020-01-01T00:00:00Z"),
        ],
    )
    def test_set_invalid_value(self, target_class, descr, name, value):
        target = target_class(descr)
        with pytest.raises(InvalidAttributeValueError) as e:
            target.set(name, value)
        assert e.value.name == name
        assert e.value.resource is descr

    def test_unknown_fields(self, target_class, descr):
        target = target_class(descr)
        with pytest.raises(UnknownAttributeError):
            target.get("body")
        with pytest.raises(UnknownAttributeError):
            target.set("body", "x")
        with pytest.raises(UnknownRelationshipError):
            target.get_to_one("editor")
        with pytest.raises(RelationshipCardinalityError):
            target.get_to_one("comments")
        with pytest.raises(RelationshipCardinalityError):
            target.set_to_many("author", ["1"])

    def test_copy(self, target_class, descr):
        target = target_class(descr, "1")
        target.set("title", "A")
        target.set_to_many("comments", ["1"])
        copied = target.copy()
        copied.set("title", "B")
        copied.set_to_many("comments", ["1", "2"])
        assert target.get("title") == "A"
        assert target.get_to_many("comments") == ["1"]
        assert copied.get_id() == "1"


class TestResources:
    def test_basic(self, descr):
        from ..resource import GenericResource, Resources

        target = Resources()
        assert target.get_type() == ""
        assert len(target) == 0
        assert target.at(0) is None
        assert target.sample() is None

        a = GenericResource(descr, "1")
        b = GenericResource(ResourceDescriptor(name="people"), "9")
        target.add(a)
        target.add(b)
        assert len(target) == 2
        assert target.at(0) is a
        assert target.at(1) is b
        assert target.at(2) is None
        assert target.at(-1) is None
        assert list(target) == [a, b]


class TestTypedCollection:
    def test_basic(self, descr):
        from ..resource import GenericResource, TypedCollection

        target = TypedCollection(descr)
        assert target.get_type() == "articles"
        sample = target.sample()
        assert sample.get_type() == "articles"
        assert sample.get_id() == ""

        target.add(GenericResource(descr, "1"))
        assert len(target) == 1
        with pytest.raises(InvalidStructureError):
            target.add(GenericResource(ResourceDescriptor(name="people"), "9"))
        assert len(target) == 1


def test_identifier_equality():
    from ..resource import Identifier

    assert Identifier(id="1", type="articles") == Identifier(
        id="1", type="articles", meta={"a": 1}
    )
    assert Identifier(id="1", type="articles") != Identifier(id="1", type="people")
    assert len({Identifier(id="1", type="articles"), Identifier(id="1", type="articles")}) == 1
