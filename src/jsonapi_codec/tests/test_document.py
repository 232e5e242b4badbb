import pytest

from ..declarative import descriptor_of
from ..resource import GenericResource, Resources
from .testing import Article, Person


def person(id_: str) -> GenericResource:
    return GenericResource(descriptor_of(Person), id_)


def article(id_: str) -> GenericResource:
    return GenericResource(descriptor_of(Article), id_)


class TestInclusionSet:
    @pytest.fixture
    def target_class(self):
        from ..document import InclusionSet

        return InclusionSet

    def test_idempotent(self, target_class):
        target = target_class()
        assert target.add(person("9"))
        for _ in range(3):
            assert not target.add(person("9"))
        assert len(target) == 1

    def test_keyed_by_type_and_id(self, target_class):
        target = target_class([person("1"), article("1")])
        assert len(target) == 2
        assert target.get("people", "1") is not None
        assert target.get("articles", "1") is not None
        assert target.get("comments", "1") is None
        assert person("1") in target
        assert person("2") not in target
        assert "people 1" not in target

    def test_first_add_wins(self, target_class):
        first = person("9")
        target = target_class([first, person("9")])
        assert target.get("people", "9") is first

    def test_primary_is_never_included(self, target_class):
        target = target_class()
        a = article("1")
        assert not target.add(article("1"), a)
        assert target.add(article("2"), a)
        assert not target.add(person("9"), Resources([article("3"), person("9")]))
        assert len(target) == 1

    def test_sorted(self, target_class):
        ordered = [person("2"), article("1"), person("1"), person("10")]
        target1 = target_class(ordered)
        target2 = target_class(reversed(ordered))
        expected = [("1", "articles"), ("1", "people"), ("10", "people"), ("2", "people")]
        assert [r.identity() for r in target1.sorted()] == expected
        assert [r.identity() for r in target2.sorted()] == expected

    def test_clear(self, target_class):
        target = target_class([person("9")])
        target.clear()
        assert len(target) == 0
        assert list(target) == []


def test_document_include():
    from ..document import Document

    a = article("1")
    doc = Document(data=a)
    assert doc.include(person("9"))
    assert not doc.include(person("9"))
    assert not doc.include(article("1"))
    assert len(doc.included) == 1
    assert doc.errors == []
    assert doc.meta == {}
