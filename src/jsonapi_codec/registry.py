"""
The type registry maps resource type names to their :py:class:`ResourceDescriptor`.

A registry is populated once while the application sets up its schema and is
then frozen.  A frozen registry is never mutated again, so any number of
concurrent marshal and unmarshal calls can read it without locking.

.. code-block:: python

   registry = TypeRegistry()
   registry.register(
       ResourceDescriptor(
           name="articles",
           attributes=[ResourceAttributeDescriptor(str, "title")],
           relationships=[ResourceToOneRelationshipDescriptor("people", "author")],
       )
   )
   registry.freeze()
"""

import logging
import typing

from .declarative import descriptor_of
from .exceptions import (
    DuplicateTypeError,
    EmptyTypeNameError,
    InvalidDeclarationError,
    InvalidRelationshipDeclarationError,
    MissingIdentifierError,
    RegistryFrozenError,
    UnknownResourceTypeError,
    UnsupportedAttributeKindError,
)
from .models import RelationshipType, ResourceDescriptor
from .serde.models import Source

logger = logging.getLogger(__name__)

RESERVED_FIELD_NAMES = frozenset(["id", "type"])


def validate_descriptor(descr: ResourceDescriptor) -> None:
    """
    Checks a resource descriptor and raises on the first violation found.

    :raises EmptyTypeNameError: if the type name is empty.
    :raises MissingIdentifierError: if there is not exactly one identifier field.
    :raises UnsupportedAttributeKindError: if an attribute is of an unsupported type.
    :raises InvalidRelationshipDeclarationError: if a relationship lacks a cardinality or a destination.
    """
    if not descr.name:
        raise EmptyTypeNameError()
    if descr.id is None or not descr.id.name:
        raise MissingIdentifierError(descr.name, descr._id_count if descr.id is None else 0)
    for attr in descr.attributes.values():
        if attr.kind is None:
            raise UnsupportedAttributeKindError(descr.name, attr.name, attr.type)
        if attr.name in RESERVED_FIELD_NAMES:
            raise InvalidDeclarationError(
                f'attribute ({attr.name}) of "{descr.name}" uses a reserved member name'
            )
    for rel in descr.relationships.values():
        if rel.name in RESERVED_FIELD_NAMES:
            raise InvalidRelationshipDeclarationError(
                descr.name, rel.name, "reserved member name"
            )
        if not isinstance(rel.type, RelationshipType):
            raise InvalidRelationshipDeclarationError(descr.name, rel.name, "no cardinality")
        if not rel.destination:
            raise InvalidRelationshipDeclarationError(
                descr.name, rel.name, "empty destination type name"
            )
        if rel.name in descr.attributes:
            raise InvalidRelationshipDeclarationError(
                descr.name, rel.name, "name collides with an attribute"
            )


class TypeRegistry:
    _descriptors: typing.Dict[str, ResourceDescriptor]
    _frozen: bool

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, descr: ResourceDescriptor) -> ResourceDescriptor:
        """
        Validates and registers a resource descriptor.

        :param ResourceDescriptor descr: the descriptor to register.
        :return: the registered descriptor.
        :raises InvalidDeclarationError: if the descriptor is malformed or its name is taken.
        """
        if self._frozen:
            raise RegistryFrozenError()
        validate_descriptor(descr)
        if descr.name in self._descriptors:
            raise DuplicateTypeError(descr.name)
        self._descriptors[descr.name] = descr
        logger.debug(
            "registered resource type %s (%d attributes, %d relationships)",
            descr.name,
            len(descr.attributes),
            len(descr.relationships),
        )
        return descr

    def register_class(self, cls: typing.Type) -> ResourceDescriptor:
        """
        Registers the descriptor attached to a class declared with
        :py:func:`jsonapi_codec.declarative.resource`.
        """
        return self.register(descriptor_of(cls))

    def freeze(self) -> "TypeRegistry":
        if not self._frozen:
            self._frozen = True
            logger.info("type registry frozen with %d type(s)", len(self._descriptors))
        return self

    def get(self, name: str) -> typing.Optional[ResourceDescriptor]:
        return self._descriptors.get(name)

    def lookup(self, name: str, source: typing.Optional[Source] = None) -> ResourceDescriptor:
        """
        Returns the descriptor registered under ``name``.

        :raises UnknownResourceTypeError: if no such type is registered.
        """
        try:
            return self._descriptors[name]
        except KeyError:
            raise UnknownResourceTypeError(name, source)

    def __contains__(self, name: typing.Any) -> bool:
        return name in self._descriptors

    def __iter__(self) -> typing.Iterator[ResourceDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)

    def __init__(self, descriptors: typing.Iterable[ResourceDescriptor] = ()):
        self._descriptors = {}
        self._frozen = False
        for descr in descriptors:
            self.register(descr)
