"""
:py:mod:`jsonapi_codec.serde.deserializer` turns a decoded JSON value into the
:py:mod:`jsonapi_codec.serde.models` representation.

Decoding happens in two phases.  :py:meth:`ReprDeserializer.split` breaks the
top-level object into its raw members without looking at the shape of the
resources, so that the caller can discriminate the kind of primary data first.
:py:meth:`ReprDeserializer.build` then converts the raw members into a document
representation of the requested class.
"""

import collections.abc
import dataclasses
import json
import typing

from .exceptions import DeserializationError, DeserializationErrorItem
from .models import (
    CollectionDocumentRepr,
    DocumentReprBase,
    ErrorRepr,
    ErrorsDocumentRepr,
    LinkageRepr,
    LinksRepr,
    Missing,
    MissingType,
    ResourceIdRepr,
    ResourceRepr,
    SingletonDocumentRepr,
    SourceRepr,
    ToManyRelDocumentRepr,
    ToOneRelDocumentRepr,
)
from .types import JSONObject, JSONValue
from .utils import JSONPointer

LINK_NAMES = ("self", "related", "about", "first", "prev", "next", "last")


@dataclasses.dataclass
class RawDocument:
    """
    The top-level members of a document, left uninterpreted.
    """

    data: typing.Union[JSONValue, MissingType] = Missing
    included: typing.Sequence[JSONValue] = ()
    errors: typing.Sequence[JSONValue] = ()
    meta: typing.Optional[JSONObject] = None
    links: typing.Optional[JSONObject] = None
    jsonapi: typing.Optional[JSONObject] = None
    payload: JSONValue = None


class ErrorCollectingContext:
    errors: typing.List[DeserializationErrorItem]

    def validation_error_occurred(self, pointer: JSONPointer, message: str) -> None:
        self.errors.append(DeserializationErrorItem(pointer, message))

    def __init__(self):
        self.errors = []


def _describe(value: JSONValue) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)


class ReprDeserializer:
    def _expect_object(
        self, ctx: ErrorCollectingContext, pointer: JSONPointer, value: JSONValue
    ) -> bool:
        if not isinstance(value, collections.abc.Mapping):
            ctx.validation_error_occurred(
                pointer, f"value must be an object, got {_describe(value)}"
            )
            return False
        return True

    def _expect_string(
        self, ctx: ErrorCollectingContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[str]:
        if not isinstance(value, str):
            ctx.validation_error_occurred(
                pointer, f"value must be a string, got {_describe(value)}"
            )
            return None
        return value

    def _convert_meta(
        self, ctx: ErrorCollectingContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[typing.Dict[str, typing.Any]]:
        if value is None:
            return None
        if not self._expect_object(ctx, pointer, value):
            return None
        return dict(typing.cast(JSONObject, value))

    def _convert_links(
        self, ctx: ErrorCollectingContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[LinksRepr]:
        if value is None or not self._expect_object(ctx, pointer, value):
            return None
        links: typing.Dict[str, typing.Optional[str]] = {}
        for k, v in typing.cast(JSONObject, value).items():
            if k not in LINK_NAMES:
                # extension links are dropped
                continue
            if isinstance(v, collections.abc.Mapping):
                # link object
                v = v.get("href")
            if v is not None:
                v = self._expect_string(ctx, pointer / k, v)
            links[k] = v
        retval = LinksRepr.from_mapping(links)
        retval._source_ = pointer
        return retval

    def _convert_resource_id(
        self, ctx: ErrorCollectingContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[ResourceIdRepr]:
        if not self._expect_object(ctx, pointer, value):
            return None
        value = typing.cast(JSONObject, value)
        type_: typing.Optional[str] = None
        id_: typing.Optional[str] = None
        if "type" not in value:
            ctx.validation_error_occurred(pointer / "type", 'value must have a property "type"')
        else:
            type_ = self._expect_string(ctx, pointer / "type", value["type"])
        if "id" not in value:
            ctx.validation_error_occurred(pointer / "id", 'value must have a property "id"')
        else:
            id_ = self._expect_string(ctx, pointer / "id", value["id"])
        meta = self._convert_meta(ctx, pointer / "meta", value.get("meta"))
        if type_ is None or id_ is None:
            return None
        return ResourceIdRepr(type=type_, id=id_, meta=meta, _source_=pointer)

    def _convert_linkage(
        self, ctx: ErrorCollectingContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[LinkageRepr]:
        if not self._expect_object(ctx, pointer, value):
            return None
        value = typing.cast(JSONObject, value)
        data: typing.Union[None, ResourceIdRepr, typing.Sequence[ResourceIdRepr]] = None
        data_present = "data" in value
        if data_present:
            data_ = value["data"]
            if isinstance(data_, collections.abc.Mapping):
                data = self._convert_resource_id(ctx, pointer / "data", data_)
            elif isinstance(data_, list):
                data = tuple(
                    r
                    for r in (
                        self._convert_resource_id(ctx, (pointer / "data")[i], item)
                        for i, item in enumerate(data_)
                    )
                    if r is not None
                )
            elif data_ is not None:
                ctx.validation_error_occurred(
                    pointer / "data",
                    f"value must be an object, an array or null, got {_describe(data_)}",
                )
        elif "links" not in value and "meta" not in value:
            ctx.validation_error_occurred(
                pointer, 'relationship must have at least one of "data", "links" or "meta"'
            )
        return LinkageRepr(
            data=data,
            data_present=data_present,
            links=self._convert_links(ctx, pointer / "links", value.get("links")),
            meta=self._convert_meta(ctx, pointer / "meta", value.get("meta")),
            _source_=pointer,
        )

    def convert_resource(
        self, ctx: ErrorCollectingContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[ResourceRepr]:
        """
        Converts a resource object.  Attribute values are left as they are in the JSON value.
        """
        if not self._expect_object(ctx, pointer, value):
            return None
        value = typing.cast(JSONObject, value)
        type_: typing.Optional[str] = None
        if "type" not in value:
            ctx.validation_error_occurred(pointer / "type", 'value must have a property "type"')
        else:
            type_ = self._expect_string(ctx, pointer / "type", value["type"])

        id_: typing.Optional[str] = None
        if value.get("id") is not None:
            id_ = self._expect_string(ctx, pointer / "id", value["id"])

        attributes: typing.Sequence[typing.Tuple[str, typing.Any]] = ()
        attributes_ = value.get("attributes")
        if attributes_ is not None and self._expect_object(
            ctx, pointer / "attributes", attributes_
        ):
            attributes = tuple(typing.cast(JSONObject, attributes_).items())

        relationships: typing.List[typing.Tuple[str, LinkageRepr]] = []
        relationships_ = value.get("relationships")
        if relationships_ is not None and self._expect_object(
            ctx, pointer / "relationships", relationships_
        ):
            for k, v in typing.cast(JSONObject, relationships_).items():
                linkage = self._convert_linkage(ctx, pointer / "relationships" / k, v)
                if linkage is not None:
                    relationships.append((k, linkage))

        links = self._convert_links(ctx, pointer / "links", value.get("links"))
        meta = self._convert_meta(ctx, pointer / "meta", value.get("meta"))
        if type_ is None:
            return None
        return ResourceRepr(
            type=type_,
            id=id_,
            attributes=attributes,
            relationships=relationships,
            links=links,
            meta=meta,
            _source_=pointer,
        )

    def convert_resource_id(
        self, ctx: ErrorCollectingContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[ResourceIdRepr]:
        return self._convert_resource_id(ctx, pointer, value)

    def _convert_error(
        self, ctx: ErrorCollectingContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[ErrorRepr]:
        if not self._expect_object(ctx, pointer, value):
            return None
        value = typing.cast(JSONObject, value)
        fields: typing.Dict[str, typing.Optional[str]] = {}
        for k in ("id", "status", "code", "title", "detail"):
            v = value.get(k)
            fields[k] = self._expect_string(ctx, pointer / k, v) if v is not None else None
        source: typing.Optional[SourceRepr] = None
        source_ = value.get("source")
        if source_ is not None and self._expect_object(ctx, pointer / "source", source_):
            source_ = typing.cast(JSONObject, source_)
            source = SourceRepr(
                pointer=source_.get("pointer"),
                parameter=source_.get("parameter"),
                _source_=pointer / "source",
            )
        return ErrorRepr(
            links=self._convert_links(ctx, pointer / "links", value.get("links")),
            meta=self._convert_meta(ctx, pointer / "meta", value.get("meta")) or {},
            source=source,
            _source_=pointer,
            **fields,
        )

    def split(self, document: JSONValue) -> RawDocument:
        """
        Splits the top-level object into its members.  Only the types of the
        members are checked; resource objects are not looked into.

        :param JSONValue document: a decoded JSON value.
        :return: a :py:class:`RawDocument`.
        :raises DeserializationError: if the value is not a JSON:API top-level object.
        """
        ctx = ErrorCollectingContext()
        root = JSONPointer()
        if not self._expect_object(ctx, root, document):
            raise DeserializationError(document, ctx.errors)
        document = typing.cast(JSONObject, document)
        raw = RawDocument(payload=document)
        if "data" in document:
            raw.data = document["data"]
        for k in ("included", "errors"):
            v = document.get(k)
            if v is None:
                continue
            if not isinstance(v, list):
                ctx.validation_error_occurred(root / k, f"value must be an array, got {_describe(v)}")
            else:
                setattr(raw, k, v)
        for k in ("meta", "links", "jsonapi"):
            v = document.get(k)
            if v is None:
                continue
            if self._expect_object(ctx, root / k, v):
                setattr(raw, k, v)
        if ctx.errors:
            raise DeserializationError(document, ctx.errors)
        return raw

    T = typing.TypeVar("T", bound=DocumentReprBase)

    def build(self, result_type: typing.Type[T], raw: RawDocument) -> T:
        """
        Builds a document representation of ``result_type`` out of a :py:class:`RawDocument`.

        :raises DeserializationError: if the raw members do not fit ``result_type``.
        """
        ctx = ErrorCollectingContext()
        root = JSONPointer()
        common: typing.Dict[str, typing.Any] = dict(
            jsonapi=dict(raw.jsonapi) if raw.jsonapi is not None else None,
            links=self._convert_links(ctx, root / "links", raw.links),
            meta=dict(raw.meta) if raw.meta is not None else None,
            _source_=root,
        )
        errors = tuple(
            e
            for e in (
                self._convert_error(ctx, (root / "errors")[i], v) for i, v in enumerate(raw.errors)
            )
            if e is not None
        )
        included = tuple(
            r
            for r in (
                self.convert_resource(ctx, (root / "included")[i], v)
                for i, v in enumerate(raw.included)
            )
            if r is not None
        )
        data_pointer = root / "data"
        retval: typing.Optional[DocumentReprBase] = None
        try:
            if result_type is ErrorsDocumentRepr:
                retval = ErrorsDocumentRepr(errors=errors, **common)
            elif result_type is SingletonDocumentRepr:
                data: typing.Any = raw.data
                if data is not None and data is not Missing:
                    data = self.convert_resource(ctx, data_pointer, data)
                retval = SingletonDocumentRepr(
                    data=data, errors=errors or None, included=included, **common
                )
            elif result_type is CollectionDocumentRepr:
                items: typing.Optional[typing.Sequence[ResourceRepr]] = None
                if raw.data is not Missing:
                    if isinstance(raw.data, list):
                        items = tuple(
                            r
                            for r in (
                                self.convert_resource(ctx, data_pointer[i], v)
                                for i, v in enumerate(raw.data)
                            )
                            if r is not None
                        )
                    else:
                        ctx.validation_error_occurred(
                            data_pointer, f"value must be an array, got {_describe(raw.data)}"
                        )
                        items = ()
                retval = CollectionDocumentRepr(
                    data=items, errors=errors or None, included=included, **common
                )
            elif result_type is ToOneRelDocumentRepr:
                id_data: typing.Any = raw.data
                if id_data is not None and id_data is not Missing:
                    id_data = self._convert_resource_id(ctx, data_pointer, id_data)
                retval = ToOneRelDocumentRepr(
                    data=id_data, errors=errors or None, included=included, **common
                )
            elif result_type is ToManyRelDocumentRepr:
                ids: typing.Optional[typing.Sequence[ResourceIdRepr]] = None
                if raw.data is not Missing:
                    if isinstance(raw.data, list):
                        ids = tuple(
                            r
                            for r in (
                                self._convert_resource_id(ctx, data_pointer[i], v)
                                for i, v in enumerate(raw.data)
                            )
                            if r is not None
                        )
                    else:
                        ctx.validation_error_occurred(
                            data_pointer, f"value must be an array, got {_describe(raw.data)}"
                        )
                        ids = ()
                retval = ToManyRelDocumentRepr(
                    data=ids, errors=errors or None, included=included, **common
                )
            else:
                raise TypeError(f"unsupported document representation: {result_type.__name__}")
        except ValueError as e:
            ctx.validation_error_occurred(root, str(e))
        if ctx.errors:
            raise DeserializationError(raw.payload, ctx.errors)
        assert retval is not None
        return typing.cast(typing.Any, retval)

    def __call__(self, result_type: typing.Type[T], document: JSONValue) -> T:
        return self.build(result_type, self.split(document))
