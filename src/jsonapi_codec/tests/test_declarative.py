import datetime
import typing

import pytest

from ..declarative import Attr, Id, StaticResource, ToMany, ToOne, descriptor_of, resource, wrap
from ..exceptions import InvalidAttributeValueError, ResourceClassNotFoundError
from ..models import AttributeKind, RelationshipType
from ..resource import GenericResource
from .testing import Article, Person


class TestResourceDecorator:
    def test_descriptor(self):
        descr = descriptor_of(Article)
        assert descr.name == "articles"
        assert descr.id.name == "id"
        assert list(descr.attributes) == ["title", "value", "published_at"]
        assert descr.attributes["title"].kind is AttributeKind.STRING
        assert not descr.attributes["title"].allow_null
        assert descr.attributes["value"].kind is AttributeKind.INT
        assert descr.attributes["published_at"].kind is AttributeKind.TIME
        assert descr.attributes["published_at"].allow_null
        assert descr.relationships["author"].type is RelationshipType.TO_ONE
        assert descr.relationships["author"].destination == "people"
        assert descr.relationships["comments"].type is RelationshipType.TO_MANY
        assert descriptor_of(Article(id="1")) is descr

    def test_defaults(self):
        a = Article()
        assert a.id == ""
        assert a.title == ""
        assert a.value == 0
        assert a.published_at is None
        assert a.author == ""
        assert a.comments == []
        assert Article().comments is not a.comments

    def test_markers(self):
        @resource("entries")
        class Entry:
            key: str = Id()
            heading: str = Attr(name="title")
            rank: int = Attr(type=AttributeKind.UINT8, allow_null=True)
            note: str = "n/a"
            writer: str = ToOne("people", name="author")
            tags: typing.List[str] = ToMany("tags", name="labels")
            counter: typing.ClassVar[int] = 0

        descr = descriptor_of(Entry)
        assert descr.id.name == "key"
        assert list(descr.attributes) == ["title", "rank", "note"]
        assert descr.attributes["rank"].kind is AttributeKind.UINT8
        assert descr.attributes["rank"].allow_null
        assert list(descr.relationships) == ["author", "labels"]

        e = Entry(key="k1", heading="H")
        assert e.note == "n/a"
        assert e.rank is None
        r = wrap(e)
        assert r.get_id() == "k1"
        assert r.get("title") == "H"
        r.set_to_one("author", "9")
        r.set_to_many("labels", ["x"])
        assert e.writer == "9"
        assert e.tags == ["x"]

    def test_not_declared(self):
        with pytest.raises(ResourceClassNotFoundError):
            descriptor_of(object())


class TestStaticResource:
    def test_projection(self):
        a = Article(id="1", title="A", author="9", comments=["1"])
        target = StaticResource(a)
        assert target.get_type() == "articles"
        assert target.get_id() == "1"
        assert target.get("title") == "A"
        assert target.get_to_one("author") == "9"
        assert target.get_to_many("comments") == ["1"]

        ts = datetime.datetime(2020, 1, 1, tzinfo=datetime.timezone.utc)
        target.set("published_at", ts)
        target.set_to_many("comments", ["1", "2"])
        target.set_id("2")
        assert a.published_at == ts
        assert a.comments == ["1", "2"]
        assert a.id == "2"

        with pytest.raises(InvalidAttributeValueError):
            target.set("value", "x")

    def test_copy(self):
        a = Article(id="1", title="A", comments=["1"])
        copied = StaticResource(a).copy()
        copied.set("title", "B")
        copied.set_to_many("comments", ["2"])
        assert a.title == "A"
        assert a.comments == ["1"]
        assert copied.obj.title == "B"

    def test_wrap(self):
        p = Person(id="9", name="Bob")
        assert isinstance(wrap(p), StaticResource)
        g = GenericResource(descriptor_of(Person), "9")
        assert wrap(g) is g
        with pytest.raises(ResourceClassNotFoundError):
            wrap(object())
