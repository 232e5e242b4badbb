import datetime
import json

import pytest

from ..declarative import descriptor_of, wrap
from ..document import Document
from ..errors import missing_data_member, not_found
from ..exceptions import (
    InvalidStructureError,
    JSONAPICodecException,
    MissingIdentifierValueError,
    RelationshipTypeMismatchError,
    UnknownPrimaryDataError,
    UnknownResourceTypeError,
    UnrenderableValueError,
)
from ..models import ResourceDescriptor, ResourceToOneRelationshipDescriptor
from ..params import Params
from ..registry import TypeRegistry
from ..resource import GenericResource, Identifier, Identifiers, Resources, TypedCollection
from .testing import Article, Comment, DictResolver, Person, build_registry


@pytest.fixture
def registry():
    return build_registry()


@pytest.fixture
def bob():
    return Person(id="9", name="Bob")


@pytest.fixture
def target_class():
    from ..marshaling import Marshaler

    return Marshaler


class TestMarshaler:
    def test_example(self, target_class, registry, bob):
        target = target_class(registry, render_links=False, resolver=DictResolver(bob))
        article = Article(id="1", title="A", author="9")
        result = target.build(
            Document(data=article), Params(relationship_data={"author": True})
        )
        assert result == {
            "data": {
                "type": "articles",
                "id": "1",
                "attributes": {
                    "title": "A",
                    "value": 0,
                    "published_at": None,
                },
                "relationships": {
                    "author": {
                        "data": {"type": "people", "id": "9"},
                    },
                },
            },
            "included": [
                {
                    "type": "people",
                    "id": "9",
                    "attributes": {"name": "Bob"},
                },
            ],
            "jsonapi": {"version": "1.0"},
        }
        assert list(result) == ["data", "included", "jsonapi"]

    def test_links(self, target_class, registry, bob):
        target = target_class(registry, prefix="https://example.com/", resolver=DictResolver(bob))
        article = Article(id="1", title="A", author="9")
        result = target.build(
            Document(data=article, links={"self": "https://example.com/articles/1"}),
            Params(relationship_data={"author": True}),
        )
        assert result["links"] == {"self": "https://example.com/articles/1"}
        assert result["data"]["links"] == {"self": "https://example.com/articles/1"}
        assert result["data"]["relationships"] == {
            "author": {
                "links": {
                    "self": "https://example.com/articles/1/relationships/author",
                    "related": "https://example.com/articles/1/author",
                },
                "data": {"type": "people", "id": "9"},
            },
            "comments": {
                "links": {
                    "self": "https://example.com/articles/1/relationships/comments",
                    "related": "https://example.com/articles/1/comments",
                },
            },
        }
        assert result["included"][0]["links"] == {"self": "https://example.com/people/9"}

    def test_relationship_data_by_document(self, target_class, registry):
        target = target_class(registry, render_links=False)
        doc = Document(
            data=Article(id="1", title="A", comments=["2", "1"]),
            rel_data={"articles": ["comments", "author"]},
        )
        result = target.build(doc)
        assert result["data"]["relationships"] == {
            "author": {"data": None},
            "comments": {
                "data": [
                    {"type": "comments", "id": "2"},
                    {"type": "comments", "id": "1"},
                ],
            },
        }
        assert "included" not in result

    def test_sparse_fieldset(self, target_class, registry):
        target = target_class(registry, render_links=False)
        result = target.build(
            Document(data=Article(id="1", title="A", value=2, author="9")),
            Params(
                fields={"articles": {"title"}},
                relationship_data={"author": True},
            ),
        )
        assert result["data"] == {
            "type": "articles",
            "id": "1",
            "attributes": {"title": "A"},
        }

    def test_sparse_fieldset_limits_inclusion(self, target_class, registry, bob):
        resolver = DictResolver(bob)
        target = target_class(registry, render_links=False, resolver=resolver)
        result = target.build(
            Document(data=Article(id="1", title="A", author="9")),
            Params(fields={"articles": {"title"}}, relationship_data={"author": True}),
        )
        assert "relationships" not in result["data"]
        assert "included" not in result
        assert resolver.calls == []

    def test_sparse_fieldset_applies_to_included(self, target_class, registry, bob):
        target = target_class(registry, render_links=False, resolver=DictResolver(bob))
        result = target.build(
            Document(data=Article(id="1", title="A", author="9")),
            Params(fields={"people": set()}, relationship_data={"author": True}),
        )
        assert result["included"] == [{"type": "people", "id": "9"}]

    def test_collection(self, target_class, registry):
        people = {
            "9": Person(id="9", name="Bob"),
            "10": Person(id="10", name="Alice"),
            "2": Person(id="2", name="Carol"),
        }
        articles = [
            Article(id="1", title="A", author="9"),
            Article(id="2", title="B", author="10"),
            Article(id="3", title="C", author="9"),
            Article(id="4", title="D", author="2"),
        ]
        target = target_class(registry, render_links=False, resolver=DictResolver(*people.values()))
        params = Params(relationship_data={"author": True})

        result1 = target.build(Document(data=Resources(wrap(a) for a in articles)), params)
        result2 = target.build(
            Document(data=Resources(wrap(a) for a in reversed(articles))), params
        )
        assert [r["id"] for r in result1["data"]] == ["1", "2", "3", "4"]
        assert [r["id"] for r in result1["included"]] == ["10", "2", "9"]
        assert result1["included"] == result2["included"]

        payload1 = target.marshal(Document(data=Resources(wrap(a) for a in articles)), params)
        payload2 = target.marshal(
            Document(data=Resources(wrap(a) for a in reversed(articles))), params
        )
        assert json.loads(payload1)["included"] == json.loads(payload2)["included"]

    def test_primary_not_included(self, target_class, registry):
        # a person whose articles point back at it
        bob = Person(id="9", name="Bob", articles=["1"])
        article = Article(id="1", title="A", author="9")
        resolver = DictResolver(bob, article)
        target = target_class(registry, render_links=False, resolver=resolver)
        result = target.build(
            Document(data=bob), Params(relationship_data={"articles": True, "author": True})
        )
        assert [(r["type"], r["id"]) for r in result["included"]] == [("articles", "1")]

        result = target.build(
            Document(data=Resources([wrap(bob), wrap(article)])),
            Params(relationship_data={"articles": True, "author": True}),
        )
        assert "included" not in result

    def test_caller_included(self, target_class, registry, bob):
        target = target_class(registry, render_links=False)
        article = Article(id="1", title="A", author="9")
        doc = Document(data=article)
        doc.include(wrap(bob))
        doc.include(wrap(Person(id="9", name="Robert")))
        result = target.build(doc)
        assert result["included"] == [
            {"type": "people", "id": "9", "attributes": {"name": "Bob"}},
        ]
        assert len(doc.included) == 1

    def test_unresolvable_is_link_only(self, target_class, registry):
        resolver = DictResolver()
        target = target_class(registry, render_links=False, resolver=resolver)
        result = target.build(
            Document(data=Article(id="1", title="A", author="9")),
            Params(relationship_data={"author": True}),
        )
        assert resolver.calls == [Identifier(id="9", type="people")]
        assert result["data"]["relationships"]["author"] == {"data": {"type": "people", "id": "9"}}
        assert "included" not in result

    def test_resolved_type_mismatch(self, target_class, registry):
        target = target_class(
            registry,
            resolver=lambda ident: Comment(id=ident.id, body="x"),
        )
        with pytest.raises(RelationshipTypeMismatchError):
            target.build(
                Document(data=Article(id="1", title="A", author="9")),
                Params(relationship_data={"author": True}),
            )

    def test_empty_collection(self, target_class, registry):
        target = target_class(registry)
        result = target.build(Document(data=TypedCollection(descriptor_of(Article))))
        assert result == {"data": [], "jsonapi": {"version": "1.0"}}

    def test_null(self, target_class, registry):
        target = target_class(registry, version="1.1")
        result = target.build(Document(meta={"count": 0}))
        assert result == {"data": None, "meta": {"count": 0}, "jsonapi": {"version": "1.1"}}

    def test_identifier(self, target_class, registry):
        target = target_class(registry)
        assert target.build(Document(data=Identifier(id="9", type="people"))) == {
            "data": {"type": "people", "id": "9"},
            "jsonapi": {"version": "1.0"},
        }
        result = target.build(
            Document(
                data=Identifiers(
                    [
                        Identifier(id="1", type="comments", meta={"order": 1}),
                        Identifier(id="2", type="comments"),
                    ]
                )
            )
        )
        assert result["data"] == [
            {"type": "comments", "id": "1", "meta": {"order": 1}},
            {"type": "comments", "id": "2"},
        ]
        assert target.build(Document(data=Identifiers()))["data"] == []

    def test_errors(self, target_class, registry):
        target = target_class(registry)
        doc = Document(
            data=Article(id="1", title="A"),
            errors=[missing_data_member(), not_found("no such article")],
            jsonapi={"version": "1.0", "meta": {"a": 1}},
        )
        doc.include(wrap(Person(id="9", name="Bob")))
        result = target.build(doc)
        assert "data" not in result
        assert "included" not in result
        assert result["errors"] == [
            {
                "status": "400",
                "title": "Missing data member",
                "detail": "Missing data top-level member in payload",
                "source": {"pointer": ""},
            },
            {
                "status": "404",
                "title": "Not Found",
                "detail": "no such article",
            },
        ]
        assert result["jsonapi"] == {"version": "1.0", "meta": {"a": 1}}

    def test_marshal(self, target_class, registry):
        target = target_class(registry, render_links=False)
        payload = target.marshal(Document(data=Article(id="1", title="Café")))
        assert isinstance(payload, bytes)
        assert "Café".encode("utf-8") in payload
        assert json.loads(payload)["data"]["attributes"]["title"] == "Café"

    def test_timestamps(self, target_class, registry):
        ts = datetime.datetime(2020, 1, 2, 12, 0, 0, tzinfo=datetime.timezone(datetime.timedelta(hours=9)))
        target = target_class(registry, render_links=False)
        result = target.build(Document(data=Article(id="1", title="A", published_at=ts)))
        assert result["data"]["attributes"]["published_at"] == "2020-01-02T03:00:00+00:00"

        naive = Article(id="1", title="A", published_at=datetime.datetime(2020, 1, 2, 3, 0, 0))
        with pytest.raises(UnrenderableValueError) as e:
            target.build(Document(data=naive))
        assert isinstance(e.value, JSONAPICodecException)
        assert "/data/attributes/published_at" in e.value.message
        target = target_class(
            registry, render_links=False, assume_naive_timezone_as=datetime.timezone.utc
        )
        result = target.build(Document(data=naive))
        assert result["data"]["attributes"]["published_at"] == "2020-01-02T03:00:00+00:00"

    def test_unknown_primary_data(self, target_class, registry):
        target = target_class(registry)
        with pytest.raises(UnknownPrimaryDataError):
            target.build(Document(data=object()))

    def test_missing_identifier(self, target_class, registry):
        target = target_class(registry)
        with pytest.raises(MissingIdentifierValueError):
            target.build(Document(data=Article(title="A")))

    def test_unregistered_type(self, target_class, registry):
        target = target_class(TypeRegistry())
        with pytest.raises(UnknownResourceTypeError):
            target.build(Document(data=Article(id="1")))

    def test_unregistered_relationship_target(self, target_class):
        registry = TypeRegistry(
            [
                ResourceDescriptor(
                    name="articles",
                    relationships=[ResourceToOneRelationshipDescriptor("people", "author")],
                )
            ]
        )
        target = target_class(registry)
        with pytest.raises(UnknownResourceTypeError) as e:
            target.build(Document(data=GenericResource(registry.lookup("articles"), "1")))
        assert e.value.name == "people"

    def test_invalid_links(self, target_class, registry):
        target = target_class(registry)
        with pytest.raises(InvalidStructureError):
            target.build(Document(data=None, links={"bogus": "/x"}))

    def test_document_left_untouched(self, target_class, registry, bob):
        target = target_class(registry, resolver=DictResolver(bob))
        doc = Document(data=Article(id="1", title="A", author="9"))
        target.build(doc, Params(relationship_data={"author": True}))
        assert len(doc.included) == 0
        assert doc.jsonapi == {}
