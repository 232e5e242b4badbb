import abc
import dataclasses
import typing
from collections import OrderedDict

from .exceptions import (
    InvalidAttributeValueError,
    InvalidStructureError,
    RelationshipCardinalityError,
    UnknownAttributeError,
    UnknownRelationshipError,
)
from .models import (
    RelationshipType,
    ResourceAttributeDescriptor,
    ResourceDescriptor,
    ResourceRelationshipDescriptor,
)
from .serde.models import AttributeValue, Source


@dataclasses.dataclass(frozen=True)
class Identifier:
    """
    A bare reference to a resource.  It never carries attributes nor relationships.
    """

    id: str
    type: str
    meta: typing.Optional[typing.Dict[str, typing.Any]] = dataclasses.field(
        default=None, compare=False, hash=False
    )


class Identifiers(typing.List[Identifier]):
    """
    An ordered sequence of :py:class:`Identifier`.
    """


def check_attribute_value(
    attr: ResourceAttributeDescriptor,
    value: typing.Any,
    source: typing.Optional[Source] = None,
) -> None:
    """
    Checks that ``value`` can be held by the attribute ``attr``.

    :raises InvalidAttributeValueError: if it can't.
    """
    assert attr.parent is not None
    assert attr.kind is not None
    if value is None:
        if not attr.allow_null:
            raise InvalidAttributeValueError(attr.parent, attr.name, value, "not nullable", source)
        return
    kind = attr.kind
    if kind.is_integer:
        # bool is a subclass of int
        if not isinstance(value, int) or isinstance(value, bool):
            raise InvalidAttributeValueError(
                attr.parent, attr.name, value, f"{kind.value} expected", source
            )
        lower, upper = kind.bounds
        if (lower is not None and value < lower) or (upper is not None and value > upper):
            raise InvalidAttributeValueError(
                attr.parent, attr.name, value, f"out of range for {kind.value}", source
            )
    elif not isinstance(value, kind.python_type):
        raise InvalidAttributeValueError(
            attr.parent, attr.name, value, f"{kind.value} expected", source
        )


class Resource(metaclass=abc.ABCMeta):
    """
    The capability set every resource offers to the marshaling and
    unmarshaling pipelines, whatever holds its values.

    Relationships are handled by identifier: a to-one relationship is the
    identifier of its target (``""`` when there is none) and a to-many
    relationship is a list of identifiers.  The type of the targets is always
    the destination declared by the relationship descriptor.
    """

    @property
    @abc.abstractmethod
    def descriptor(self) -> ResourceDescriptor:
        ...  # pragma: nocover

    @abc.abstractmethod
    def get_id(self) -> str:
        ...  # pragma: nocover

    @abc.abstractmethod
    def set_id(self, id: str) -> None:
        ...  # pragma: nocover

    @abc.abstractmethod
    def _load_attribute(self, attr: ResourceAttributeDescriptor) -> AttributeValue:
        ...  # pragma: nocover

    @abc.abstractmethod
    def _store_attribute(self, attr: ResourceAttributeDescriptor, value: AttributeValue) -> None:
        ...  # pragma: nocover

    @abc.abstractmethod
    def _load_relationship(
        self, rel: ResourceRelationshipDescriptor
    ) -> typing.Union[str, typing.List[str]]:
        ...  # pragma: nocover

    @abc.abstractmethod
    def _store_relationship(
        self, rel: ResourceRelationshipDescriptor, value: typing.Union[str, typing.List[str]]
    ) -> None:
        ...  # pragma: nocover

    @abc.abstractmethod
    def copy(self) -> "Resource":
        ...  # pragma: nocover

    def get_type(self) -> str:
        return self.descriptor.name

    def attrs(self) -> typing.Mapping[str, ResourceAttributeDescriptor]:
        return self.descriptor.attributes

    def rels(self) -> typing.Mapping[str, ResourceRelationshipDescriptor]:
        return self.descriptor.relationships

    def _attribute(self, name: str) -> ResourceAttributeDescriptor:
        try:
            return self.descriptor.attributes[name]
        except KeyError:
            raise UnknownAttributeError(self.descriptor, name)

    def _relationship(
        self, name: str, type_: RelationshipType
    ) -> ResourceRelationshipDescriptor:
        try:
            rel = self.descriptor.relationships[name]
        except KeyError:
            raise UnknownRelationshipError(self.descriptor, name)
        if rel.type is not type_:
            raise RelationshipCardinalityError(self.descriptor, name)
        return rel

    def get(self, name: str) -> AttributeValue:
        """
        Returns the value of the attribute ``name``.

        :raises UnknownAttributeError: if the resource has no such attribute.
        """
        return self._load_attribute(self._attribute(name))

    def set(self, name: str, value: AttributeValue) -> None:
        """
        Sets the value of the attribute ``name``.

        :raises UnknownAttributeError: if the resource has no such attribute.
        :raises InvalidAttributeValueError: if the value does not match the kind of the attribute.
        """
        attr = self._attribute(name)
        check_attribute_value(attr, value)
        self._store_attribute(attr, value)

    def get_to_one(self, name: str) -> str:
        rel = self._relationship(name, RelationshipType.TO_ONE)
        return typing.cast(str, self._load_relationship(rel))

    def set_to_one(self, name: str, id: typing.Optional[str]) -> None:
        self._store_relationship(self._relationship(name, RelationshipType.TO_ONE), id or "")

    def get_to_many(self, name: str) -> typing.List[str]:
        return list(self._load_relationship(self._relationship(name, RelationshipType.TO_MANY)))

    def set_to_many(self, name: str, ids: typing.Iterable[str]) -> None:
        self._store_relationship(self._relationship(name, RelationshipType.TO_MANY), list(ids))

    def identity(self) -> typing.Tuple[str, str]:
        return self.get_id(), self.get_type()

    def identifier(self) -> Identifier:
        return Identifier(id=self.get_id(), type=self.get_type())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(type={self.get_type()!r}, id={self.get_id()!r})"


class GenericResource(Resource):
    """
    A resource whose values are kept in mappings.  Every attribute starts at
    the zero value of its kind, or ``None`` when it is nullable.
    """

    _descriptor: ResourceDescriptor
    _id: str
    _values: "OrderedDict[str, AttributeValue]"
    _to_one: typing.Dict[str, str]
    _to_many: typing.Dict[str, typing.List[str]]

    @property
    def descriptor(self) -> ResourceDescriptor:
        return self._descriptor

    def get_id(self) -> str:
        return self._id

    def set_id(self, id: str) -> None:
        self._id = id

    def _load_attribute(self, attr: ResourceAttributeDescriptor) -> AttributeValue:
        return self._values[attr.name]

    def _store_attribute(self, attr: ResourceAttributeDescriptor, value: AttributeValue) -> None:
        self._values[attr.name] = value

    def _load_relationship(
        self, rel: ResourceRelationshipDescriptor
    ) -> typing.Union[str, typing.List[str]]:
        if rel.type is RelationshipType.TO_ONE:
            return self._to_one[rel.name]
        else:
            return self._to_many[rel.name]

    def _store_relationship(
        self, rel: ResourceRelationshipDescriptor, value: typing.Union[str, typing.List[str]]
    ) -> None:
        if rel.type is RelationshipType.TO_ONE:
            self._to_one[rel.name] = typing.cast(str, value)
        else:
            self._to_many[rel.name] = typing.cast(typing.List[str], value)

    def copy(self) -> "GenericResource":
        retval = GenericResource(self._descriptor, self._id)
        retval._values.update(self._values)
        retval._to_one.update(self._to_one)
        retval._to_many.update((k, list(v)) for k, v in self._to_many.items())
        return retval

    def __init__(self, descr: ResourceDescriptor, id: str = ""):
        self._descriptor = descr
        self._id = id
        self._values = OrderedDict()
        for name, attr in descr.attributes.items():
            assert attr.kind is not None
            self._values[name] = None if attr.allow_null else attr.kind.zero()
        self._to_one = {}
        self._to_many = {}
        for name, rel in descr.relationships.items():
            if rel.type is RelationshipType.TO_ONE:
                self._to_one[name] = ""
            else:
                self._to_many[name] = []


class Collection(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def get_type(self) -> str:
        """
        Returns the type name of the resources the collection is declared to
        hold, or ``""`` if the collection is heterogeneous.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def __len__(self) -> int:
        ...  # pragma: nocover

    @abc.abstractmethod
    def at(self, index: int) -> typing.Optional[Resource]:
        """
        Returns the resource at ``index``, or ``None`` if ``index`` is out of range.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def add(self, resource: Resource) -> None:
        ...  # pragma: nocover

    @abc.abstractmethod
    def sample(self) -> typing.Optional[Resource]:
        ...  # pragma: nocover

    def __iter__(self) -> typing.Iterator[Resource]:
        for i in range(len(self)):
            r = self.at(i)
            assert r is not None
            yield r


class Resources(Collection):
    """
    A heterogeneous collection.
    """

    _items: typing.List[Resource]

    def get_type(self) -> str:
        return ""

    def __len__(self) -> int:
        return len(self._items)

    def at(self, index: int) -> typing.Optional[Resource]:
        if 0 <= index < len(self._items):
            return self._items[index]
        return None

    def add(self, resource: Resource) -> None:
        self._items.append(resource)

    def sample(self) -> typing.Optional[Resource]:
        return None

    def __init__(self, resources: typing.Iterable[Resource] = ()):
        self._items = list(resources)


class TypedCollection(Resources):
    """
    A collection of resources of a single declared type.  Its type is known even
    when the collection is empty.
    """

    _descriptor: ResourceDescriptor

    @property
    def descriptor(self) -> ResourceDescriptor:
        return self._descriptor

    def get_type(self) -> str:
        return self._descriptor.name

    def add(self, resource: Resource) -> None:
        if resource.get_type() != self._descriptor.name:
            raise InvalidStructureError(
                f'a collection of "{self._descriptor.name}" cannot hold a resource of "{resource.get_type()}"'
            )
        super().add(resource)

    def sample(self) -> Resource:
        return GenericResource(self._descriptor)

    def __init__(self, descr: ResourceDescriptor, resources: typing.Iterable[Resource] = ()):
        super().__init__()
        self._descriptor = descr
        for r in resources:
            self.add(r)


PrimaryData = typing.Union[Resource, Collection, Identifier, Identifiers, None]
