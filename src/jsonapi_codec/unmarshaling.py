"""
:py:mod:`jsonapi_codec.unmarshaling` reconstructs a :py:class:`Document` from a JSON:API payload.

The payload is first split into its top-level members without looking into
the resources; the shape of ``data`` then decides how the rest is decoded.
Every resource is typed against the registry and comes back as a
:py:class:`GenericResource`.
"""

import collections.abc
import datetime
import json
import logging
import typing

from .document import Document, inclusion_key
from .errors import Error
from .exceptions import (
    InvalidAttributeValueError,
    InvalidStructureError,
    MalformedDocumentError,
    MissingPrimaryDataError,
    RelationshipCardinalityError,
    RelationshipTypeMismatchError,
    UnknownAttributeError,
    UnknownRelationshipError,
)
from .models import (
    AttributeKind,
    RelationshipType,
    ResourceAttributeDescriptor,
    ResourceDescriptor,
)
from .registry import TypeRegistry
from .resource import (
    GenericResource,
    Identifier,
    Identifiers,
    Resources,
    check_attribute_value,
)
from .serde.deserializer import ErrorCollectingContext, RawDocument, ReprDeserializer
from .serde.exceptions import DeserializationError
from .serde.models import (
    AttributeValue,
    CollectionDocumentRepr,
    ErrorsDocumentRepr,
    Missing,
    ResourceIdRepr,
    ResourceRepr,
    SingletonDocumentRepr,
    Source,
    ToManyRelDocumentRepr,
    ToOneRelDocumentRepr,
)
from .serde.types import JSONValue, Payload
from .serde.utils import JSONPointer

logger = logging.getLogger(__name__)


def parse_datetime(value: str) -> datetime.datetime:
    """
    Parses an ISO 8601 timestamp.  A trailing ``Z`` stands for UTC.
    """
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return datetime.datetime.fromisoformat(value)


def _pointer_of(repr_source: typing.Optional[Source]) -> JSONPointer:
    if isinstance(repr_source, JSONPointer):
        return repr_source
    elif isinstance(repr_source, str):
        return JSONPointer(repr_source)
    return JSONPointer()


class Unmarshaler:
    """
    :param TypeRegistry registry: the registry the resources are described by.
    :param bool strict: if True, members unknown to the registry are rejected
                        instead of being ignored.
    :param assume_naive_timezone_as: the timezone given to timestamps that carry no
                                     UTC offset.  Such timestamps are rejected when None.
    """

    _registry: TypeRegistry
    _strict: bool
    _assume_naive_timezone_as: typing.Optional[datetime.tzinfo]
    _deserializer: ReprDeserializer

    def _decode(self, payload: Payload) -> JSONValue:
        if isinstance(payload, collections.abc.Mapping):
            return payload
        try:
            return json.loads(payload)
        except ValueError as e:
            raise MalformedDocumentError(f"payload is not a valid JSON text: {e}")

    def _split(self, payload: Payload) -> RawDocument:
        try:
            return self._deserializer.split(self._decode(payload))
        except DeserializationError as e:
            raise MalformedDocumentError(e.message, [item.pointer for item in e.errors])

    def _convert_value(
        self, attr: ResourceAttributeDescriptor, value: typing.Any, source: JSONPointer
    ) -> AttributeValue:
        if attr.kind is AttributeKind.TIME and isinstance(value, str):
            try:
                value = parse_datetime(value)
            except ValueError:
                assert attr.parent is not None
                raise InvalidAttributeValueError(
                    attr.parent, attr.name, value, "not an ISO 8601 timestamp", source
                )
            if value.tzinfo is None:
                if self._assume_naive_timezone_as is None:
                    assert attr.parent is not None
                    raise InvalidAttributeValueError(
                        attr.parent, attr.name, value, "timestamp without UTC offset", source
                    )
                value = value.replace(tzinfo=self._assume_naive_timezone_as)
        check_attribute_value(attr, value, source)
        return value

    def _check_linkage_type(
        self, descr: ResourceDescriptor, name: str, ident: ResourceIdRepr, source: JSONPointer
    ) -> None:
        expected = descr.relationships[name].destination
        if ident.type != expected:
            raise RelationshipTypeMismatchError(descr, name, expected, ident.type, source)

    def _to_resource(self, repr_: ResourceRepr) -> GenericResource:
        pointer = _pointer_of(repr_._source_)
        descr = self._registry.lookup(repr_.type, pointer / "type")
        resource = GenericResource(descr, repr_.id or "")

        for name, value in repr_.attributes.items():
            attr_pointer = pointer / "attributes" / name
            attr = descr.attributes.get(name)
            if attr is None:
                if self._strict:
                    raise UnknownAttributeError(descr, name, attr_pointer)
                continue
            resource.set(name, self._convert_value(attr, value, attr_pointer))

        for name, linkage in repr_.relationships.items():
            rel_pointer = pointer / "relationships" / name
            rel = descr.relationships.get(name)
            if rel is None:
                if self._strict:
                    raise UnknownRelationshipError(descr, name, rel_pointer)
                continue
            if not linkage.data_present:
                continue
            data = linkage.data
            if rel.type is RelationshipType.TO_ONE:
                if data is None:
                    resource.set_to_one(name, "")
                elif isinstance(data, ResourceIdRepr):
                    self._check_linkage_type(descr, name, data, rel_pointer / "data" / "type")
                    resource.set_to_one(name, data.id)
                else:
                    raise RelationshipCardinalityError(descr, name, rel_pointer / "data")
            else:
                if data is None or isinstance(data, ResourceIdRepr):
                    raise RelationshipCardinalityError(descr, name, rel_pointer / "data")
                for i, ident in enumerate(data):
                    self._check_linkage_type(
                        descr, name, ident, (rel_pointer / "data")[i] / "type"
                    )
                resource.set_to_many(name, [ident.id for ident in data])

        return resource

    def _screen_included(self, raw: RawDocument) -> typing.Set[int]:
        """
        Reads every included resource as a bare identifier.  Returns the indices
        of the entries to decode, that is all but the repeated ones.
        """
        ctx = ErrorCollectingContext()
        base = JSONPointer() / "included"
        seen: typing.Set[str] = set()
        retval: typing.Set[int] = set()
        for i, value in enumerate(raw.included):
            ident = self._deserializer.convert_resource_id(ctx, base[i], value)
            if ident is None:
                continue
            self._registry.lookup(ident.type, base[i] / "type")
            key = inclusion_key(ident.type, ident.id)
            if key in seen:
                if self._strict:
                    raise InvalidStructureError(
                        f'resource "{ident.type}" "{ident.id}" is included more than once',
                        [base[i]],
                    )
                logger.debug("ignoring duplicate included resource %s", key)
                continue
            seen.add(key)
            retval.add(i)
        if ctx.errors:
            raise DeserializationError(raw.payload, ctx.errors)
        return retval

    def _populate_common(self, doc: Document, raw: RawDocument) -> None:
        doc.meta = dict(raw.meta) if raw.meta is not None else {}
        doc.jsonapi = dict(raw.jsonapi) if raw.jsonapi is not None else {}

    def unmarshal(self, payload: Payload) -> Document:
        """
        Decodes ``payload`` into a :py:class:`Document`.

        :param payload: the payload as bytes or text, or an already decoded JSON object.
        :raises MalformedDocumentError: if the payload is not a JSON object.
        :raises MissingPrimaryDataError: if the document has neither data nor errors.
        :raises UnknownResourceTypeError: if a resource is of an unregistered type.
        :raises DeserializationError: if a member does not have the expected shape.
        """
        raw = self._split(payload)
        doc = Document()
        self._populate_common(doc, raw)

        if raw.data is Missing:
            if not raw.errors:
                raise MissingPrimaryDataError([JSONPointer() / "data"])
            errors_repr = self._deserializer.build(ErrorsDocumentRepr, raw)
            doc.errors = [Error.from_repr(e) for e in errors_repr.errors]
            if errors_repr.links is not None:
                doc.links = errors_repr.links.to_mapping()
            logger.debug("unmarshaled %d error(s)", len(doc.errors))
            return doc

        if raw.errors:
            if self._strict:
                raise InvalidStructureError(
                    'a document must not contain both "data" and "errors"', [JSONPointer()]
                )
            raw.errors = ()

        included = self._screen_included(raw)
        data_repr: typing.Union[SingletonDocumentRepr, CollectionDocumentRepr]
        if isinstance(raw.data, collections.abc.Mapping) or raw.data is None:
            data_repr = self._deserializer.build(SingletonDocumentRepr, raw)
            if data_repr.data is not None:
                doc.data = self._to_resource(data_repr.data)
                logger.debug(
                    "unmarshaled resource %s/%s", doc.data.get_type(), doc.data.get_id()
                )
            else:
                logger.debug("unmarshaled null primary data")
        elif isinstance(raw.data, list):
            data_repr = self._deserializer.build(CollectionDocumentRepr, raw)
            doc.data = Resources(self._to_resource(r) for r in data_repr.data)
            logger.debug("unmarshaled collection of %d resource(s)", len(doc.data))
        else:
            raise MissingPrimaryDataError([JSONPointer() / "data"])

        for i, r in enumerate(data_repr.included):
            if i in included:
                doc.included.add(self._to_resource(r))
        if data_repr.links is not None:
            doc.links = data_repr.links.to_mapping()
        logger.debug("%d included resource(s) unmarshaled", len(doc.included))
        return doc

    def unmarshal_identifiers(
        self, payload: Payload
    ) -> typing.Union[Identifier, Identifiers, None]:
        """
        Decodes a document whose primary data is resource linkage, as found at
        relationship endpoints.

        :raises MissingPrimaryDataError: if the document has no data.
        :raises UnknownResourceTypeError: if an identifier is of an unregistered type.
        """
        raw = self._split(payload)
        data_pointer = JSONPointer() / "data"
        if raw.data is Missing:
            raise MissingPrimaryDataError([data_pointer])
        raw.errors = ()
        if isinstance(raw.data, collections.abc.Mapping) or raw.data is None:
            to_one = self._deserializer.build(ToOneRelDocumentRepr, raw)
            if to_one.data is None:
                return None
            self._registry.lookup(to_one.data.type, data_pointer / "type")
            ident = to_one.data
            return Identifier(id=ident.id, type=ident.type, meta=ident.meta or None)
        elif isinstance(raw.data, list):
            to_many = self._deserializer.build(ToManyRelDocumentRepr, raw)
            retval = Identifiers()
            for i, ident in enumerate(to_many.data):
                self._registry.lookup(ident.type, data_pointer[i] / "type")
                retval.append(Identifier(id=ident.id, type=ident.type, meta=ident.meta or None))
            return retval
        else:
            raise MissingPrimaryDataError([data_pointer])

    def __init__(
        self,
        registry: TypeRegistry,
        strict: bool = False,
        assume_naive_timezone_as: typing.Optional[datetime.tzinfo] = None,
    ):
        self._registry = registry
        self._strict = strict
        self._assume_naive_timezone_as = assume_naive_timezone_as
        self._deserializer = ReprDeserializer()
