import datetime
import enum
import typing
from collections import OrderedDict

from .serde.models import AttributeValue
from .utils import assert_not_none


class RelationshipType(enum.Enum):
    TO_ONE = "to_one"
    TO_MANY = "to_many"


class AttributeKind(enum.Enum):
    """
    The closed set of attribute kinds a resource may declare.  Each kind can be
    made nullable through :py:attr:`ResourceAttributeDescriptor.allow_null`.
    """

    STRING = "string"
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    BOOL = "bool"
    TIME = "time"

    @property
    def python_type(self) -> type:
        if self is AttributeKind.STRING:
            return str
        elif self is AttributeKind.BOOL:
            return bool
        elif self is AttributeKind.TIME:
            return datetime.datetime
        return int

    @property
    def is_integer(self) -> bool:
        return self.python_type is int

    @property
    def bounds(self) -> typing.Tuple[typing.Optional[int], typing.Optional[int]]:
        """
        Inclusive bounds of an integer kind.  ``None`` means unbounded.
        """
        return _INTEGER_BOUNDS.get(self, (None, None))

    def zero(self) -> AttributeValue:
        if self is AttributeKind.STRING:
            return ""
        elif self is AttributeKind.BOOL:
            return False
        elif self is AttributeKind.TIME:
            return datetime.datetime(1, 1, 1, tzinfo=datetime.timezone.utc)
        return 0

    @classmethod
    def from_python_type(cls, type_: typing.Any) -> "AttributeKind":
        """
        Maps the Python types to the kinds: ``str``, ``int``, ``bool`` and
        :py:class:`datetime.datetime`.

        :raises ValueError: for any other type.
        """
        if isinstance(type_, AttributeKind):
            return type_
        try:
            return _PYTHON_TYPE_TO_KIND[type_]
        except (KeyError, TypeError):
            raise ValueError(f"unsupported attribute type: {type_!r}")


_INTEGER_BOUNDS: typing.Dict[
    AttributeKind, typing.Tuple[typing.Optional[int], typing.Optional[int]]
] = {
    AttributeKind.INT: (-(2 ** 63), 2 ** 63 - 1),
    AttributeKind.INT8: (-(2 ** 7), 2 ** 7 - 1),
    AttributeKind.INT16: (-(2 ** 15), 2 ** 15 - 1),
    AttributeKind.INT32: (-(2 ** 31), 2 ** 31 - 1),
    AttributeKind.INT64: (-(2 ** 63), 2 ** 63 - 1),
    AttributeKind.UINT: (0, 2 ** 64 - 1),
    AttributeKind.UINT8: (0, 2 ** 8 - 1),
    AttributeKind.UINT16: (0, 2 ** 16 - 1),
    AttributeKind.UINT32: (0, 2 ** 32 - 1),
    AttributeKind.UINT64: (0, 2 ** 64 - 1),
}

_PYTHON_TYPE_TO_KIND: typing.Dict[typing.Any, AttributeKind] = {
    str: AttributeKind.STRING,
    int: AttributeKind.INT,
    bool: AttributeKind.BOOL,
    datetime.datetime: AttributeKind.TIME,
}


class ResourceMemberDescriptor:
    parent: typing.Optional["ResourceDescriptor"] = None
    name: str

    T = typing.TypeVar("T", bound="ResourceMemberDescriptor")

    def bind(self: T, parent: "ResourceDescriptor") -> T:
        self.parent = parent
        return self


class ResourceIdDescriptor(ResourceMemberDescriptor):
    """
    Describes the identifier field of a resource.  ``name`` is the name of the
    field that holds the identifier on the native side (``"id"`` by default).
    """

    def __init__(self, name: str = "id"):
        self.name = name


class ResourceAttributeDescriptor(ResourceMemberDescriptor):
    kind: typing.Optional[AttributeKind]
    type: typing.Any
    allow_null: bool

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, kind={self.kind}, allow_null={self.allow_null})"

    def __init__(
        self,
        type: typing.Any,
        name: str,
        allow_null: bool = False,
    ):
        """
        :param type: an :py:class:`AttributeKind` or one of the Python types it maps from.
        :param str name: the name of the attribute.
        :param bool allow_null: True if the attribute is nullable.
        """
        self.name = name
        self.type = type
        self.allow_null = allow_null
        try:
            self.kind = AttributeKind.from_python_type(type)
        except ValueError:
            # reported by TypeRegistry.register()
            self.kind = None


class ResourceRelationshipDescriptor(ResourceMemberDescriptor):
    destination: str
    type: typing.Optional[RelationshipType] = None
    inverse: typing.Optional[str]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, destination={self.destination!r})"

    def __init__(
        self,
        destination: str,
        name: str,
        inverse: typing.Optional[str] = None,
    ):
        """
        :param str destination: the type name of the resources on the other side.
        :param str name: the name of the relationship.
        :param Optional[str] inverse: the name of the relationship on the other side, if any.
        """
        super().__init__()
        self.destination = destination
        self.name = name
        self.inverse = inverse


class ResourceToOneRelationshipDescriptor(ResourceRelationshipDescriptor):
    type = RelationshipType.TO_ONE
    """
    Always set to :py:class:`RelationshipType`.``TO_ONE``
    """


class ResourceToManyRelationshipDescriptor(ResourceRelationshipDescriptor):
    type = RelationshipType.TO_MANY
    """
    Always set to :py:class:`RelationshipType`.``TO_MANY``
    """


class ResourceDescriptor:
    """
    A :py:class:`ResourceDescriptor` holds information about a JSON:API resource type.
    It is the entry the :py:class:`jsonapi_codec.registry.TypeRegistry` keeps for each type.

    :param str name: The name of the resource type.
    :param Iterable[ResourceAttributeDescriptor] attributes: The descriptors for the attributes the resource holds.
    :param Iterable[ResourceRelationshipDescriptor] relationships: The descriptors for the relationships the resource has.
    :param Optional[ResourceIdDescriptor] id: The descriptor of the identifier field.
    """

    name: str
    """
    The name of the resource type.
    """
    id: typing.Optional[ResourceIdDescriptor]
    _attributes: typing.MutableMapping[str, ResourceAttributeDescriptor]
    _relationships: typing.MutableMapping[str, ResourceRelationshipDescriptor]
    _id_count: int

    @property
    def attributes(self) -> typing.Mapping[str, ResourceAttributeDescriptor]:
        """
        The mapping of attribute names to :py:class:`ResourceAttributeDescriptor`s.
        """
        return self._attributes

    @property
    def relationships(self) -> typing.Mapping[str, ResourceRelationshipDescriptor]:
        """
        The mapping of relationship names to :py:class:`ResourceRelationshipDescriptor`s.
        """
        return self._relationships

    @property
    def field_names(self) -> typing.Sequence[str]:
        """
        Names of the attributes followed by the names of the relationships, in declaration order.
        """
        return tuple(self._attributes) + tuple(self._relationships)

    def has_field(self, name: str) -> bool:
        return name in self._attributes or name in self._relationships

    def add_attribute(self, attr: ResourceAttributeDescriptor) -> None:
        """
        Add an attribute to the resource descriptor.

        :param ResourceAttributeDescriptor attr: the attribute to add.
        """
        self._attributes[assert_not_none(attr.name)] = attr.bind(self)

    def add_relationship(self, rel: ResourceRelationshipDescriptor) -> None:
        """
        Add an relationship to the resource descriptor.

        :param ResourceRelationshipDescriptor rel: the relationship to add.
        """
        self._relationships[assert_not_none(rel.name)] = rel.bind(self)

    def __repr__(self) -> str:
        return f"ResourceDescriptor(name={self.name!r})"

    def __init__(
        self,
        name: str,
        attributes: typing.Iterable[ResourceAttributeDescriptor] = (),
        relationships: typing.Iterable[ResourceRelationshipDescriptor] = (),
        id: typing.Union[ResourceIdDescriptor, typing.Sequence[ResourceIdDescriptor], None] = None,
    ) -> None:
        self.name = name
        if id is None:
            ids: typing.Sequence[ResourceIdDescriptor] = (ResourceIdDescriptor(),)
        elif isinstance(id, ResourceIdDescriptor):
            ids = (id,)
        else:
            ids = tuple(id)
        self._id_count = len(ids)
        self.id = ids[0].bind(self) if len(ids) == 1 else None
        self._attributes = OrderedDict(
            ((assert_not_none(attr.name), attr.bind(self)) for attr in attributes)
        )
        self._relationships = OrderedDict(
            ((assert_not_none(rel.name), rel.bind(self)) for rel in relationships)
        )
