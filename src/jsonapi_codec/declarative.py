"""
Declares resource types on plain Python classes.

.. code-block:: python

   @resource("articles")
   class Article:
       id: str
       title: str
       published_at: typing.Optional[datetime.datetime]
       author: str = ToOne("people", inverse="articles")
       tags: typing.List[str] = ToMany("tags")

   registry.register_class(Article)
   wrap(Article(id="1", title="A"))

The field layout is read once, when the class is decorated.  Each class
carries the resulting :py:class:`ResourceDescriptor` in ``__jsonapi_descriptor__``
and is turned into a dataclass whose fields all have a default.
"""

import dataclasses
import typing

from .exceptions import ResourceClassNotFoundError
from .models import (
    AttributeKind,
    RelationshipType,
    ResourceAttributeDescriptor,
    ResourceDescriptor,
    ResourceIdDescriptor,
    ResourceRelationshipDescriptor,
    ResourceToManyRelationshipDescriptor,
    ResourceToOneRelationshipDescriptor,
)
from .resource import Resource
from .serde.models import AttributeValue
from .utils import UNSPECIFIED, UnspecifiedType


@dataclasses.dataclass(frozen=True)
class Id:
    """
    Marks the field holding the identifier.  A field named ``id`` is the
    identifier when no field is marked.
    """


@dataclasses.dataclass(frozen=True)
class Attr:
    type: typing.Union[UnspecifiedType, typing.Type[AttributeValue], AttributeKind] = UNSPECIFIED
    name: typing.Union[UnspecifiedType, str] = UNSPECIFIED
    allow_null: typing.Union[UnspecifiedType, bool] = UNSPECIFIED


@dataclasses.dataclass(frozen=True)
class ToOne:
    destination: str
    name: typing.Union[UnspecifiedType, str] = UNSPECIFIED
    inverse: typing.Optional[str] = None


@dataclasses.dataclass(frozen=True)
class ToMany:
    destination: str
    name: typing.Union[UnspecifiedType, str] = UNSPECIFIED
    inverse: typing.Optional[str] = None


_NoneType = type(None)


def _unwrap_optional(annotation: typing.Any) -> typing.Tuple[typing.Any, bool]:
    if typing.get_origin(annotation) is typing.Union:
        args = typing.get_args(annotation)
        if _NoneType in args:
            rest = tuple(a for a in args if a is not _NoneType)
            if len(rest) == 1:
                return rest[0], True
            return typing.Union[rest], True  # type: ignore
    return annotation, False


def build_descriptor(
    cls: type, name: str
) -> typing.Tuple[ResourceDescriptor, typing.Dict[str, str], typing.Dict[str, typing.Any]]:
    """
    Reads the field layout of ``cls``.

    :return: a tuple of the descriptor, the mapping of member names to the names
             of the fields holding them, and the defaults to give to each field.
    """
    hints = typing.get_type_hints(cls)
    ids: typing.List[ResourceIdDescriptor] = []
    attributes: typing.List[ResourceAttributeDescriptor] = []
    relationships: typing.List[ResourceRelationshipDescriptor] = []
    native_names: typing.Dict[str, str] = {}
    defaults: typing.Dict[str, typing.Any] = {}
    id_marked = any(isinstance(cls.__dict__.get(n), Id) for n in hints)

    for field_name, annotation in hints.items():
        if typing.get_origin(annotation) is typing.ClassVar:
            continue
        marker = cls.__dict__.get(field_name, UNSPECIFIED)
        if marker is UNSPECIFIED and field_name == "id" and not id_marked:
            marker = Id()
        if isinstance(marker, Id):
            ids.append(ResourceIdDescriptor(field_name))
            defaults[field_name] = ""
        elif isinstance(marker, ToOne):
            member_name = field_name if isinstance(marker.name, UnspecifiedType) else marker.name
            relationships.append(
                ResourceToOneRelationshipDescriptor(marker.destination, member_name, marker.inverse)
            )
            native_names[member_name] = field_name
            defaults[field_name] = ""
        elif isinstance(marker, ToMany):
            member_name = field_name if isinstance(marker.name, UnspecifiedType) else marker.name
            relationships.append(
                ResourceToManyRelationshipDescriptor(marker.destination, member_name, marker.inverse)
            )
            native_names[member_name] = field_name
            defaults[field_name] = dataclasses.field(default_factory=list)
        else:
            if isinstance(marker, Attr):
                attr_marker = marker
                default: typing.Any = UNSPECIFIED
            else:
                attr_marker = Attr()
                default = marker
            type_, nullable = _unwrap_optional(annotation)
            if not isinstance(attr_marker.type, UnspecifiedType):
                type_ = attr_marker.type
            if not isinstance(attr_marker.allow_null, UnspecifiedType):
                nullable = attr_marker.allow_null
            member_name = (
                field_name if isinstance(attr_marker.name, UnspecifiedType) else attr_marker.name
            )
            attr = ResourceAttributeDescriptor(type_, member_name, allow_null=nullable)
            attributes.append(attr)
            native_names[member_name] = field_name
            if default is UNSPECIFIED:
                if nullable:
                    default = None
                elif attr.kind is not None:
                    default = attr.kind.zero()
                else:
                    default = None
            defaults[field_name] = default

    descr = ResourceDescriptor(
        name=name,
        attributes=attributes,
        relationships=relationships,
        id=ids,
    )
    return descr, native_names, defaults


T = typing.TypeVar("T", bound=type)


def resource(name: str) -> typing.Callable[[T], T]:
    """
    A class decorator that declares the class as the resource type ``name``.
    """

    def _(cls: T) -> T:
        descr, native_names, defaults = build_descriptor(cls, name)
        for field_name, default in defaults.items():
            setattr(cls, field_name, default)
        cls = typing.cast(T, dataclasses.dataclass(cls))
        setattr(cls, "__jsonapi_descriptor__", descr)
        setattr(cls, "__jsonapi_native_names__", native_names)
        return cls

    return _


def descriptor_of(cls_or_obj: typing.Any) -> ResourceDescriptor:
    cls = cls_or_obj if isinstance(cls_or_obj, type) else type(cls_or_obj)
    descr = getattr(cls, "__jsonapi_descriptor__", None)
    if not isinstance(descr, ResourceDescriptor):
        raise ResourceClassNotFoundError(cls)
    return descr


class StaticResource(Resource):
    """
    Projects the fields of an instance of a class declared with :py:func:`resource`.
    Values are read from and written to the instance itself.
    """

    obj: typing.Any
    _descriptor: ResourceDescriptor
    _native_names: typing.Mapping[str, str]

    @property
    def descriptor(self) -> ResourceDescriptor:
        return self._descriptor

    def get_id(self) -> str:
        assert self._descriptor.id is not None
        value = getattr(self.obj, self._descriptor.id.name)
        return "" if value is None else str(value)

    def set_id(self, id: str) -> None:
        assert self._descriptor.id is not None
        setattr(self.obj, self._descriptor.id.name, id)

    def _load_attribute(self, attr: ResourceAttributeDescriptor) -> AttributeValue:
        return getattr(self.obj, self._native_names[attr.name])

    def _store_attribute(self, attr: ResourceAttributeDescriptor, value: AttributeValue) -> None:
        setattr(self.obj, self._native_names[attr.name], value)

    def _load_relationship(
        self, rel: ResourceRelationshipDescriptor
    ) -> typing.Union[str, typing.List[str]]:
        value = getattr(self.obj, self._native_names[rel.name])
        if rel.type is RelationshipType.TO_ONE:
            return value or ""
        else:
            return list(value or ())

    def _store_relationship(
        self, rel: ResourceRelationshipDescriptor, value: typing.Union[str, typing.List[str]]
    ) -> None:
        setattr(self.obj, self._native_names[rel.name], value)

    def copy(self) -> "StaticResource":
        to_many = {
            self._native_names[name]: self.get_to_many(name)
            for name, rel in self._descriptor.relationships.items()
            if rel.type is RelationshipType.TO_MANY
        }
        return StaticResource(dataclasses.replace(self.obj, **to_many))

    def __init__(self, obj: typing.Any):
        self.obj = obj
        self._descriptor = descriptor_of(obj)
        self._native_names = getattr(type(obj), "__jsonapi_native_names__")


def wrap(obj: typing.Any) -> Resource:
    """
    Returns ``obj`` as a :py:class:`Resource`.  ``obj`` must be an instance of a
    class declared with :py:func:`resource` unless it already is a resource.

    :raises ResourceClassNotFoundError: if ``obj`` is not declared as a resource.
    """
    if isinstance(obj, Resource):
        return obj
    return StaticResource(obj)
