import abc
import typing

from .serde.exceptions import DeserializationError, JSONAPISerdeError  # noqa: F401
from .serde.models import Source
from .serde.utils import english_enumerate


class JSONAPICodecException(JSONAPISerdeError, metaclass=abc.ABCMeta):
    @property
    @abc.abstractmethod
    def message(self) -> str:
        ...  # pragma: nocover

    def __str__(self):
        return self.message


class InvalidDeclarationError(JSONAPICodecException):
    """
    Raised by :py:meth:`jsonapi_codec.registry.TypeRegistry.register` when a
    resource declaration is malformed.
    """

    _message: str

    @property
    def message(self) -> str:
        return self._message

    def __init__(self, message: str):
        super().__init__(message)
        self._message = message


class ResourceClassNotFoundError(InvalidDeclarationError):
    cls: typing.Any

    def __init__(self, cls: typing.Any):
        super().__init__(f"{cls!r} is not declared as a resource")
        self.cls = cls


class EmptyTypeNameError(InvalidDeclarationError):
    def __init__(self):
        super().__init__("resource type name must not be empty")


class MissingIdentifierError(InvalidDeclarationError):
    type_name: str

    def __init__(self, type_name: str, count: int):
        super().__init__(
            f'resource "{type_name}" must declare exactly one identifier field (got {count})'
        )
        self.type_name = type_name


class UnsupportedAttributeKindError(InvalidDeclarationError):
    type_name: str
    name: str

    def __init__(self, type_name: str, name: str, type_: typing.Any):
        super().__init__(
            f'attribute ({name}) of "{type_name}" is of unsupported type {type_!r}'
        )
        self.type_name = type_name
        self.name = name


class InvalidRelationshipDeclarationError(InvalidDeclarationError):
    type_name: str
    name: str

    def __init__(self, type_name: str, name: str, detail: str):
        super().__init__(f'relationship ({name}) of "{type_name}" is invalid: {detail}')
        self.type_name = type_name
        self.name = name


class DuplicateTypeError(InvalidDeclarationError):
    type_name: str

    def __init__(self, type_name: str):
        super().__init__(f'resource "{type_name}" is already registered')
        self.type_name = type_name


class RegistryFrozenError(InvalidDeclarationError):
    def __init__(self):
        super().__init__("the registry is frozen and no longer accepts registrations")


class JSONAPIMapperError(JSONAPICodecException, metaclass=abc.ABCMeta):
    @property
    @abc.abstractmethod
    def sources(self) -> typing.Sequence[Source]:
        ...  # pragma: nocover


class JSONAPIAttributeError(JSONAPIMapperError):
    resource: "models.ResourceDescriptor"
    name: str
    _source: typing.Optional[Source]

    @property
    def sources(self) -> typing.Sequence[Source]:
        if self._source is None:
            return []
        else:
            return [self._source]

    def __init__(
        self,
        resource: "models.ResourceDescriptor",
        name: str,
        source: typing.Optional[Source] = None,
    ):
        super().__init__(resource, name)
        self.resource = resource
        self.name = name
        self._source = source


class InvalidAttributeValueError(JSONAPIAttributeError):
    actual: typing.Any
    detail: typing.Optional[str]

    @property
    def message(self):
        return f'attribute ({self.name}) in "{self.resource.name}" contains an invalid value{" (" + self.detail + ")" if self.detail is not None else ""}: {self.actual!r}'

    def __init__(
        self,
        resource: "models.ResourceDescriptor",
        name: str,
        actual: typing.Any,
        detail: typing.Optional[str] = None,
        source: typing.Optional[Source] = None,
    ):
        super().__init__(resource, name, source)
        self.actual = actual
        self.detail = detail


class UnknownAttributeError(JSONAPIAttributeError):
    @property
    def message(self):
        return f'"{self.resource.name}" has no attribute ({self.name})'


class JSONAPIRelationshipError(JSONAPIMapperError):
    resource: "models.ResourceDescriptor"
    name: str
    _source: typing.Optional[Source]

    @property
    def sources(self) -> typing.Sequence[Source]:
        if self._source is None:
            return []
        else:
            return [self._source]

    def __init__(
        self,
        resource: "models.ResourceDescriptor",
        name: str,
        source: typing.Optional[Source] = None,
    ):
        super().__init__(resource, name)
        self.resource = resource
        self.name = name
        self._source = source


class UnknownRelationshipError(JSONAPIRelationshipError):
    @property
    def message(self):
        return f'"{self.resource.name}" has no relationship ({self.name})'


class RelationshipTypeMismatchError(JSONAPIRelationshipError):
    expected: str
    actual: str

    @property
    def message(self):
        return f'relationship ({self.name}) in "{self.resource.name}" refers to "{self.expected}", got "{self.actual}"'

    def __init__(
        self,
        resource: "models.ResourceDescriptor",
        name: str,
        expected: str,
        actual: str,
        source: typing.Optional[Source] = None,
    ):
        super().__init__(resource, name, source)
        self.expected = expected
        self.actual = actual


class RelationshipCardinalityError(JSONAPIRelationshipError):
    @property
    def message(self):
        rel = self.resource.relationships[self.name]
        if rel.type is models.RelationshipType.TO_ONE:
            expected = "an identifier or null"
        else:
            expected = "an array of identifiers"
        return f'relationship ({self.name}) in "{self.resource.name}" must be {expected}'


class UnknownFieldError(JSONAPIMapperError):
    type_name: str
    names: typing.Sequence[str]

    @property
    def sources(self) -> typing.Sequence[Source]:
        return []

    @property
    def message(self):
        return f'"{self.type_name}" has no field named {english_enumerate(self.names, conj=" or ")}'

    def __init__(self, type_name: str, names: typing.Sequence[str]):
        super().__init__(type_name, names)
        self.type_name = type_name
        self.names = names


class UnknownResourceTypeError(JSONAPIMapperError):
    name: str
    _source: typing.Optional[Source]

    @property
    def sources(self) -> typing.Sequence[Source]:
        if self._source is None:
            return []
        else:
            return [self._source]

    @property
    def message(self):
        return f'no resource known as "{self.name}"'

    def __init__(self, name: str, source: typing.Optional[Source] = None):
        super().__init__(name)
        self.name = name
        self._source = source


class InvalidStructureError(JSONAPIMapperError):
    _message: str
    _sources: typing.Sequence[Source]

    @property
    def message(self) -> str:
        return self._message

    @property
    def sources(self) -> typing.Sequence[Source]:
        return self._sources

    def __init__(self, message: str, sources: typing.Sequence[Source] = ()):
        super().__init__(message)
        self._message = message
        self._sources = sources


class MissingPrimaryDataError(InvalidStructureError):
    def __init__(self, sources: typing.Sequence[Source] = ()):
        super().__init__("the document has neither primary data nor errors", sources)


class UnknownPrimaryDataError(InvalidStructureError):
    data: typing.Any

    def __init__(self, data: typing.Any):
        super().__init__(f"data contains an unknown type: {type(data).__name__}")
        self.data = data


class MalformedDocumentError(InvalidStructureError):
    pass


class UnrenderableValueError(InvalidStructureError):
    """
    Raised when a value held by a resource has no JSON rendition, such as a
    naive timestamp with no timezone to assume for it.
    """

    pass


class MissingIdentifierValueError(InvalidStructureError):
    type_name: str

    def __init__(self, type_name: str, sources: typing.Sequence[Source] = ()):
        super().__init__(f'a resource of "{type_name}" has no identifier', sources)
        self.type_name = type_name


from . import models  # noqa: E402
