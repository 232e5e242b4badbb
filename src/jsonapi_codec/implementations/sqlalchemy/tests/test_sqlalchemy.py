import datetime

import pytest
import sqlalchemy as sa  # type: ignore
from sqlalchemy import orm  # type: ignore

from ....document import Document
from ....exceptions import InvalidStructureError
from ....marshaling import Marshaler
from ....models import AttributeKind, RelationshipType
from ....params import Params
from ....registry import TypeRegistry
from ....resource import GenericResource, Identifier
from ....unmarshaling import Unmarshaler


class TestSQLAMapping:
    @pytest.fixture
    def metadata(self):
        yield sa.MetaData()

    @pytest.fixture
    def table_people(self, metadata):
        return sa.Table(
            "people",
            metadata,
            sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
            sa.Column("name", sa.String(255), nullable=False),
        )

    @pytest.fixture
    def table_articles(self, metadata, table_people):
        return sa.Table(
            "articles",
            metadata,
            sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
            sa.Column("title", sa.String(255), nullable=False),
            sa.Column("rating", sa.Numeric(), nullable=True),
            sa.Column("published_at", sa.DateTime(), nullable=True),
            sa.Column("author_id", sa.Integer(), sa.ForeignKey(table_people.c.id), nullable=True),
        )

    @pytest.fixture
    def table_comments(self, metadata, table_articles):
        return sa.Table(
            "comments",
            metadata,
            sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
            sa.Column("body", sa.String(255), nullable=False),
            sa.Column("article_id", sa.Integer(), sa.ForeignKey(table_articles.c.id)),
        )

    @pytest.fixture
    def Person(self):
        class Person:
            pass

        return Person

    @pytest.fixture
    def Article(self):
        class Article:
            pass

        return Article

    @pytest.fixture
    def Comment(self):
        class Comment:
            pass

        return Comment

    @pytest.fixture
    def sa_registry(
        self, metadata, table_people, table_articles, table_comments, Person, Article, Comment
    ):
        sa_registry = orm.registry(metadata=metadata)
        sa_registry.map_imperatively(Person, table_people)
        sa_registry.map_imperatively(
            Article,
            table_articles,
            properties={
                "author": orm.relationship(Person),
                "comments": orm.relationship(Comment),
            },
        )
        sa_registry.map_imperatively(Comment, table_comments)
        yield sa_registry
        sa_registry.dispose()

    @pytest.fixture
    def engine(self):
        yield sa.create_engine("sqlite:///")

    @pytest.fixture
    def session(self, engine, metadata, sa_registry):
        metadata.create_all(engine)
        session = orm.Session(bind=engine)
        yield session
        session.close()

    @pytest.fixture
    def registry(self):
        return TypeRegistry()

    @pytest.fixture
    def target(self, registry, session, Person, Article, Comment):
        from ..core import SQLAMapping

        return SQLAMapping(
            registry, session, [(Article, "articles"), (Person, "people"), (Comment, "comments")]
        )

    @pytest.fixture
    def fixture(self, session, Person, Article, Comment):
        bob = Person()
        bob.name = "Bob"
        alice = Person()
        alice.name = "Alice"
        comment = Comment()
        comment.body = "x"
        article = Article()
        article.title = "A"
        article.published_at = datetime.datetime(2020, 1, 2, 3, 4, 5)
        article.author = bob
        article.comments = [comment]
        session.add_all([article, alice])
        session.flush()
        return article, bob, alice, comment

    def test_descriptors(self, target, registry, Article, Person):
        descr = target.descriptor_of(Article)
        assert registry.lookup("articles") is descr
        assert target.type_name_of(Article) == "articles"
        assert descr.id.name == "id"
        assert list(descr.attributes) == ["title", "published_at"]
        assert descr.attributes["title"].kind is AttributeKind.STRING
        assert not descr.attributes["title"].allow_null
        assert descr.attributes["published_at"].kind is AttributeKind.TIME
        assert descr.attributes["published_at"].allow_null
        assert descr.relationships["author"].type is RelationshipType.TO_ONE
        assert descr.relationships["author"].destination == "people"
        assert descr.relationships["comments"].type is RelationshipType.TO_MANY
        assert descr.relationships["comments"].destination == "comments"
        assert list(target.descriptor_of(Person).attributes) == ["name"]

    def test_unmapped_destination_is_skipped(self, session, Article, Person):
        from ..core import SQLAMapping

        registry = TypeRegistry()
        target = SQLAMapping(registry, session, [(Article, "articles"), (Person, "people")])
        assert list(target.descriptor_of(Article).relationships) == ["author"]

    def test_resource(self, target, fixture):
        article, bob, alice, comment = fixture
        r = target.wrap(article)
        assert r.identity() == (str(article.id), "articles")
        assert r.get("title") == "A"
        assert r.get_to_one("author") == str(bob.id)
        assert r.get_to_many("comments") == [str(comment.id)]

        r.set("title", "B")
        r.set_to_one("author", str(alice.id))
        assert article.title == "B"
        assert article.author is alice
        r.set_to_one("author", "")
        assert article.author is None
        r.set_to_many("comments", [])
        assert article.comments == []

        with pytest.raises(InvalidStructureError):
            r.set_to_one("author", "999")

    def test_copy(self, target, fixture):
        article, bob, alice, comment = fixture
        copied = target.wrap(article).copy()
        assert isinstance(copied, GenericResource)
        copied.set("title", "B")
        assert article.title == "A"
        assert copied.get_to_one("author") == str(bob.id)

    def test_identity(self, target, session, Person):
        p = Person()
        p.name = "Carol"
        assert target.get_identity(p) == ""
        session.add(p)
        session.flush()
        assert target.get_identity(p) == str(p.id)
        assert target.convert_identity(Person, "12") == (12,)
        with pytest.raises(InvalidStructureError):
            target.convert_identity(Person, "x")

    def test_resolve(self, target, fixture):
        article, bob, alice, comment = fixture
        resolved = target.resolve(Identifier(id=str(bob.id), type="people"))
        assert resolved.obj is bob
        assert target.resolve(Identifier(id="999", type="people")) is None
        assert target.resolve(Identifier(id="x", type="people")) is None
        assert target.resolve(Identifier(id="1", type="tags")) is None

    def test_marshal(self, target, registry, fixture):
        article, bob, alice, comment = fixture
        marshaler = Marshaler(
            registry,
            render_links=False,
            resolver=target.resolve,
            assume_naive_timezone_as=datetime.timezone.utc,
        )
        result = marshaler.build(
            Document(data=target.wrap(article)),
            Params(relationship_data={"author": True, "comments": True}),
        )
        assert result == {
            "data": {
                "type": "articles",
                "id": str(article.id),
                "attributes": {
                    "title": "A",
                    "published_at": "2020-01-02T03:04:05+00:00",
                },
                "relationships": {
                    "author": {"data": {"type": "people", "id": str(bob.id)}},
                    "comments": {"data": [{"type": "comments", "id": str(comment.id)}]},
                },
            },
            "included": [
                {"type": "comments", "id": str(comment.id), "attributes": {"body": "x"}},
                {"type": "people", "id": str(bob.id), "attributes": {"name": "Bob"}},
            ],
            "jsonapi": {"version": "1.0"},
        }

        doc = Unmarshaler(registry).unmarshal(
            marshaler.marshal(
                Document(data=target.wrap(article)), Params(relationship_data={"author": True})
            )
        )
        assert doc.data.get("title") == "A"
        assert doc.data.get_to_one("author") == str(bob.id)
        assert doc.included.get("people", str(bob.id)).get("name") == "Bob"


class TestCompositeKey:
    @pytest.fixture
    def metadata(self):
        yield sa.MetaData()

    @pytest.fixture
    def table_entries(self, metadata):
        return sa.Table(
            "entries",
            metadata,
            sa.Column("id1", sa.Integer(), primary_key=True),
            sa.Column("id2", sa.Integer(), primary_key=True),
            sa.Column("note", sa.String(255), nullable=True),
        )

    @pytest.fixture
    def Entry(self, metadata, table_entries):
        class Entry:
            pass

        sa_registry = orm.registry(metadata=metadata)
        sa_registry.map_imperatively(Entry, table_entries)
        yield Entry
        sa_registry.dispose()

    def test_identity(self, metadata, Entry):
        from ..core import SQLAMapping

        engine = sa.create_engine("sqlite:///")
        metadata.create_all(engine)
        session = orm.Session(bind=engine)
        registry = TypeRegistry()
        target = SQLAMapping(registry, session, [(Entry, "entries")])
        assert registry.lookup("entries").id.name == "id1-id2"
        assert list(registry.lookup("entries").attributes) == ["note"]

        e = Entry()
        e.id1 = 1
        e.id2 = 2
        e.note = "n"
        session.add(e)
        session.flush()
        assert target.get_identity(e) == "1-2"
        assert target.convert_identity(Entry, "1-2") == (1, 2)
        assert target.query(Entry, "1-2") is e
        with pytest.raises(InvalidStructureError):
            target.convert_identity(Entry, "1")

        r = target.wrap(e)
        r.set_id("3-4")
        assert (e.id1, e.id2) == (3, 4)
        session.close()

    def test_identity_with_separator_in_components(self):
        from ..core import SQLAMapping

        metadata = sa.MetaData()
        table_labels = sa.Table(
            "labels",
            metadata,
            sa.Column("namespace", sa.String(255), primary_key=True),
            sa.Column("number", sa.Integer(), primary_key=True),
        )

        class Label:
            pass

        sa_registry = orm.registry(metadata=metadata)
        sa_registry.map_imperatively(Label, table_labels)
        try:
            engine = sa.create_engine("sqlite:///")
            metadata.create_all(engine)
            session = orm.Session(bind=engine)
            target = SQLAMapping(TypeRegistry(), session, [(Label, "labels")])

            label = Label()
            label.namespace = "a-b%c"
            label.number = -3
            session.add(label)
            session.flush()
            assert target.get_identity(label) == "a%2Db%25c-%2D3"
            assert target.convert_identity(Label, "a%2Db%25c-%2D3") == ("a-b%c", -3)
            assert target.query(Label, target.get_identity(label)) is label
            with pytest.raises(InvalidStructureError):
                target.convert_identity(Label, "a-b-3")
            session.close()
        finally:
            sa_registry.dispose()
