from .declarative import Attr, Id, StaticResource, ToMany, ToOne, resource, wrap  # noqa: F401
from .document import Document, InclusionSet  # noqa: F401
from .errors import Error, ErrorSource  # noqa: F401
from .exceptions import (  # noqa: F401
    DeserializationError,
    InvalidDeclarationError,
    InvalidStructureError,
    JSONAPICodecException,
    MalformedDocumentError,
    MissingPrimaryDataError,
    UnknownPrimaryDataError,
    UnknownResourceTypeError,
    UnrenderableValueError,
)
from .marshaling import Marshaler  # noqa: F401
from .models import (  # noqa: F401
    AttributeKind,
    ResourceAttributeDescriptor,
    ResourceDescriptor,
    ResourceIdDescriptor,
    ResourceToManyRelationshipDescriptor,
    ResourceToOneRelationshipDescriptor,
)
from .params import Params  # noqa: F401
from .registry import TypeRegistry  # noqa: F401
from .resource import (  # noqa: F401
    Collection,
    GenericResource,
    Identifier,
    Identifiers,
    Resource,
    Resources,
    TypedCollection,
)
from .unmarshaling import Unmarshaler  # noqa: F401
