"""
Structured error objects that take the place of primary data in a document.

Each constructor below produces one entry of the fixed vocabulary:

.. code-block:: python

   doc = Document(errors=[invalid_page_size_parameter("-1"), not_found()])
"""

import dataclasses
import http
import typing

from .exceptions import (
    InvalidAttributeValueError,
    InvalidDeclarationError,
    JSONAPIMapperError,
    MissingPrimaryDataError,
    UnknownAttributeError,
    UnknownFieldError,
    UnknownRelationshipError,
    UnknownResourceTypeError,
)
from .serde.exceptions import DeserializationError, JSONAPISerdeError
from .serde.models import ErrorRepr, LinksRepr, Source, SourceRepr


@dataclasses.dataclass
class ErrorSource:
    pointer: typing.Optional[str] = None
    parameter: typing.Optional[str] = None


@dataclasses.dataclass
class Error:
    id: typing.Optional[str] = None
    code: typing.Optional[str] = None
    status: typing.Optional[str] = None
    title: typing.Optional[str] = None
    detail: typing.Optional[str] = None
    source: typing.Optional[ErrorSource] = None
    links: typing.Dict[str, str] = dataclasses.field(default_factory=dict)
    meta: typing.Dict[str, typing.Any] = dataclasses.field(default_factory=dict)

    @property
    def status_code(self) -> typing.Optional[int]:
        return int(self.status) if self.status is not None else None

    def to_repr(self) -> ErrorRepr:
        return ErrorRepr(
            id=self.id,
            status=self.status,
            code=self.code,
            title=self.title,
            detail=self.detail,
            source=(
                SourceRepr(pointer=self.source.pointer, parameter=self.source.parameter)
                if self.source is not None
                else None
            ),
            links=LinksRepr.from_mapping(self.links) if self.links else None,
            meta=dict(self.meta),
        )

    @classmethod
    def from_repr(cls, repr_: ErrorRepr) -> "Error":
        return cls(
            id=repr_.id,
            code=repr_.code,
            status=repr_.status,
            title=repr_.title,
            detail=repr_.detail,
            source=(
                ErrorSource(pointer=repr_.source.pointer, parameter=repr_.source.parameter)
                if repr_.source is not None
                else None
            ),
            links=repr_.links.to_mapping() if repr_.links is not None else {},
            meta=dict(repr_.meta),
        )

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status} {self.title}: {self.detail}"
        return f"{self.status} {self.title}"


def new_error(
    status: http.HTTPStatus,
    detail: typing.Optional[str] = None,
    title: typing.Optional[str] = None,
    pointer: typing.Optional[str] = None,
    parameter: typing.Optional[str] = None,
) -> Error:
    return Error(
        status=str(status.value),
        title=status.phrase if title is None else title,
        detail=detail,
        source=(
            ErrorSource(pointer=pointer, parameter=parameter)
            if pointer is not None or parameter is not None
            else None
        ),
    )


def bad_request(detail: typing.Optional[str] = None, title: typing.Optional[str] = None) -> Error:
    return new_error(http.HTTPStatus.BAD_REQUEST, detail, title)


def invalid_field(detail: typing.Optional[str] = None) -> Error:
    return new_error(http.HTTPStatus.BAD_REQUEST, detail, "Invalid field")


def invalid_page_number_parameter(bad_page: str) -> Error:
    return new_error(
        http.HTTPStatus.BAD_REQUEST,
        f'The page number parameter is not positive integer (including 0): "{bad_page}"',
        "Invalid page number parameter",
        parameter="page[number]",
    )


def invalid_page_size_parameter(bad_size: str) -> Error:
    return new_error(
        http.HTTPStatus.BAD_REQUEST,
        f'The page size parameter is not positive integer (including 0): "{bad_size}"',
        "Invalid page size parameter",
        parameter="page[size]",
    )


def invalid_field_value_in_body(pointer: str, bad_value: str, type_name: str) -> Error:
    return new_error(
        http.HTTPStatus.BAD_REQUEST,
        f'The field value "{bad_value}" is invalid for type "{type_name}"',
        "Invalid field value in body",
        pointer=pointer,
    )


def duplicate_field_in_fields_parameter(type_name: str, field: str) -> Error:
    return new_error(
        http.HTTPStatus.BAD_REQUEST,
        f'The fields parameter contains the same field more than once: "{field}"',
        "Duplicate field",
        parameter=f"fields[{type_name}]",
    )


def missing_data_member() -> Error:
    return new_error(
        http.HTTPStatus.BAD_REQUEST,
        "Missing data top-level member in payload",
        "Missing data member",
        pointer="",
    )


def unknown_field_in_body(type_name: str, field: str, pointer: typing.Optional[str] = None) -> Error:
    return new_error(
        http.HTTPStatus.BAD_REQUEST,
        f'"{field}" is not a known field of "{type_name}"',
        "Unknown field in body",
        pointer=pointer,
    )


def unknown_field_in_url(field: str) -> Error:
    return new_error(
        http.HTTPStatus.BAD_REQUEST,
        f'"{field}" is not a known field',
        "Unknown field in URL",
        parameter=field,
    )


def unknown_parameter(param: str) -> Error:
    return new_error(
        http.HTTPStatus.BAD_REQUEST,
        f'"{param}" is not a known parameter',
        "Unknown parameter",
        parameter=param,
    )


def unknown_relationship_in_path(type_name: str, rel: str, path: str) -> Error:
    return new_error(
        http.HTTPStatus.NOT_FOUND,
        f'"{rel}" is not a relationship of "{type_name}" (path: {path})',
        "Unknown relationship",
    )


def unknown_type_in_url(type_name: str) -> Error:
    return new_error(
        http.HTTPStatus.NOT_FOUND,
        f'"{type_name}" is not a known type',
        "Unknown type in URL",
    )


def unknown_field_in_filter_parameter(field: str) -> Error:
    return new_error(
        http.HTTPStatus.BAD_REQUEST,
        f'"{field}" is not a known field',
        "Unknown field in filter parameter",
        parameter="filter",
    )


def unauthorized(detail: typing.Optional[str] = None) -> Error:
    return new_error(http.HTTPStatus.UNAUTHORIZED, detail)


def forbidden(detail: typing.Optional[str] = None) -> Error:
    return new_error(http.HTTPStatus.FORBIDDEN, detail)


def not_found(detail: typing.Optional[str] = None) -> Error:
    return new_error(http.HTTPStatus.NOT_FOUND, detail)


def conflict(detail: typing.Optional[str] = None) -> Error:
    return new_error(http.HTTPStatus.CONFLICT, detail)


def payload_too_large(detail: typing.Optional[str] = None) -> Error:
    return new_error(http.HTTPStatus.REQUEST_ENTITY_TOO_LARGE, detail, "Payload Too Large")


def request_header_fields_too_large(detail: typing.Optional[str] = None) -> Error:
    return new_error(http.HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE, detail)


def request_uri_too_long(detail: typing.Optional[str] = None) -> Error:
    return new_error(http.HTTPStatus.REQUEST_URI_TOO_LONG, detail, "URI Too Long")


def unsupported_media_type(detail: typing.Optional[str] = None) -> Error:
    return new_error(http.HTTPStatus.UNSUPPORTED_MEDIA_TYPE, detail)


def too_many_requests(detail: typing.Optional[str] = None) -> Error:
    return new_error(http.HTTPStatus.TOO_MANY_REQUESTS, detail)


def internal_server_error(detail: typing.Optional[str] = None) -> Error:
    return new_error(http.HTTPStatus.INTERNAL_SERVER_ERROR, detail)


def not_implemented(detail: typing.Optional[str] = None) -> Error:
    return new_error(http.HTTPStatus.NOT_IMPLEMENTED, detail)


def service_unavailable(detail: typing.Optional[str] = None) -> Error:
    return new_error(http.HTTPStatus.SERVICE_UNAVAILABLE, detail)


def _pointer(sources: typing.Sequence[Source]) -> typing.Optional[str]:
    for source in sources:
        return str(source)
    return None


def from_exception(exc: BaseException) -> Error:
    """
    Converts an exception raised by the codec into the matching error object.
    Anything the codec does not know about becomes an internal server error
    that does not disclose the exception.
    """
    if isinstance(exc, MissingPrimaryDataError):
        return missing_data_member()
    elif isinstance(exc, (UnknownAttributeError, UnknownRelationshipError)):
        return unknown_field_in_body(exc.resource.name, exc.name, _pointer(exc.sources))
    elif isinstance(exc, InvalidAttributeValueError):
        return invalid_field_value_in_body(
            _pointer(exc.sources) or "", str(exc.actual), exc.resource.name
        )
    elif isinstance(exc, UnknownFieldError):
        return unknown_field_in_url(exc.names[0])
    elif isinstance(exc, UnknownResourceTypeError):
        e = bad_request(exc.message, "Unknown type")
        if exc.sources:
            e.source = ErrorSource(pointer=_pointer(exc.sources))
        return e
    elif isinstance(exc, JSONAPIMapperError):
        e = bad_request(exc.message)
        if exc.sources:
            e.source = ErrorSource(pointer=_pointer(exc.sources))
        return e
    elif isinstance(exc, DeserializationError):
        e = bad_request(exc.message, "Malformed document")
        if exc.errors:
            e.source = ErrorSource(pointer=str(exc.errors[0].pointer))
        return e
    elif isinstance(exc, InvalidDeclarationError) or not isinstance(exc, JSONAPISerdeError):
        return internal_server_error()
    return bad_request(str(exc))
