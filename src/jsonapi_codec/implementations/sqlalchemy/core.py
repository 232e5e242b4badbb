import logging
import typing
import urllib.parse
from collections import OrderedDict

import sqlalchemy as sa  # type: ignore
from sqlalchemy import orm  # type: ignore

from ...exceptions import InvalidStructureError
from ...models import (
    AttributeKind,
    RelationshipType,
    ResourceAttributeDescriptor,
    ResourceDescriptor,
    ResourceIdDescriptor,
    ResourceRelationshipDescriptor,
    ResourceToManyRelationshipDescriptor,
    ResourceToOneRelationshipDescriptor,
)
from ...registry import TypeRegistry
from ...resource import GenericResource, Identifier, Resource
from ...serde.models import AttributeValue

logger = logging.getLogger(__name__)


def is_alien_clause(sa_mapper: orm.Mapper, expression: sa.sql.ClauseElement) -> bool:
    if not isinstance(expression, sa.Column):
        return True
    if expression.table is None:
        return True
    return expression.table not in sa_mapper.tables


def _escape_component(value: typing.Any) -> str:
    return str(value).replace("%", "%25").replace("-", "%2D")


def _python_type_of(column: sa.Column) -> typing.Optional[type]:
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


class SQLAMapping:
    """
    Associates SQLAlchemy mapped classes with resource types.

    The attributes of a resource are the mapped columns of the class except
    the primary key and foreign key columns, and its relationships are the
    relationship properties whose target class is part of the mapping.  The
    identifier of a resource is its primary key.  The components of a composite
    key are joined by ``-``, with ``%`` and ``-`` in them percent-escaped.

    .. code-block:: python

       mapping = SQLAMapping(registry, session, [(Article, "articles"), (Person, "people")])
       marshaler = Marshaler(registry, resolver=mapping.resolve)
       marshaler.marshal(Document(data=mapping.wrap(article)))
    """

    registry: TypeRegistry
    session: orm.Session
    _names: typing.Dict[type, str]
    _classes: typing.Dict[str, type]
    _descriptors: typing.Dict[type, ResourceDescriptor]

    def _build_descriptor(self, class_: type, name: str) -> ResourceDescriptor:
        sa_mapper = sa.inspect(class_)
        pkey_cols = set(sa_mapper.primary_key)
        attributes: "OrderedDict[str, ResourceAttributeDescriptor]" = OrderedDict()
        relationships: "OrderedDict[str, ResourceRelationshipDescriptor]" = OrderedDict()
        for prop in sa_mapper.iterate_properties:
            if isinstance(prop, orm.ColumnProperty):
                expr = prop.expression
                if is_alien_clause(sa_mapper, expr):
                    continue
                if expr in pkey_cols or expr.foreign_keys:
                    continue
                type_ = _python_type_of(expr)
                try:
                    AttributeKind.from_python_type(type_)
                except ValueError:
                    logger.debug("%s.%s is of unsupported type %r; skipped", name, prop.key, type_)
                    continue
                attributes[prop.key] = ResourceAttributeDescriptor(
                    type_, prop.key, allow_null=bool(expr.nullable)
                )
            elif isinstance(prop, orm.RelationshipProperty):
                destination = self._names.get(prop.mapper.class_)
                if destination is None:
                    continue
                if prop.uselist:
                    relationships[prop.key] = ResourceToManyRelationshipDescriptor(
                        destination, prop.key
                    )
                else:
                    relationships[prop.key] = ResourceToOneRelationshipDescriptor(
                        destination, prop.key
                    )
        id_name = "-".join(col.key for col in sa_mapper.primary_key)
        return ResourceDescriptor(
            name=name,
            attributes=attributes.values(),
            relationships=relationships.values(),
            id=ResourceIdDescriptor(id_name),
        )

    def type_name_of(self, class_: type) -> str:
        return self._names[class_]

    def descriptor_of(self, class_: type) -> ResourceDescriptor:
        return self._descriptors[class_]

    def get_identity(self, obj: typing.Any) -> str:
        sa_mapper = orm.object_mapper(obj)
        values = sa_mapper.primary_key_from_instance(obj)
        if any(v is None for v in values):
            return ""
        if len(values) == 1:
            return str(values[0])
        return "-".join(_escape_component(v) for v in values)

    def convert_identity(self, class_: type, id: str) -> typing.Tuple[typing.Any, ...]:
        sa_mapper = sa.inspect(class_)
        pkey_cols = sa_mapper.primary_key
        if len(pkey_cols) > 1:
            # "-" never occurs within an escaped component
            components = [urllib.parse.unquote(c) for c in id.split("-")]
        else:
            components = [id]
        if len(components) != len(pkey_cols):
            raise InvalidStructureError(f'invalid identifier for "{self._names[class_]}": "{id}"')
        retval = []
        for col, c in zip(pkey_cols, components):
            type_ = _python_type_of(col)
            try:
                retval.append(type_(c) if type_ is not None else c)
            except ValueError:
                raise InvalidStructureError(
                    f'invalid identifier for "{self._names[class_]}": "{id}"'
                )
        return tuple(retval)

    def query(self, class_: type, id: str) -> typing.Optional[typing.Any]:
        pk = self.convert_identity(class_, id)
        return self.session.get(class_, pk if len(pk) > 1 else pk[0])

    def wrap(self, obj: typing.Any) -> "SQLAResource":
        return SQLAResource(self, obj)

    def resolve(self, ident: Identifier) -> typing.Optional["SQLAResource"]:
        """
        Looks up the object identified by ``ident``.  Suitable as the resolver of a
        :py:class:`jsonapi_codec.marshaling.Marshaler`.
        """
        class_ = self._classes.get(ident.type)
        if class_ is None:
            return None
        try:
            obj = self.query(class_, ident.id)
        except InvalidStructureError:
            return None
        return self.wrap(obj) if obj is not None else None

    def __init__(
        self,
        registry: TypeRegistry,
        session: orm.Session,
        classes: typing.Iterable[typing.Tuple[type, str]],
    ):
        self.registry = registry
        self.session = session
        self._names = OrderedDict()
        self._classes = {}
        self._descriptors = {}
        for class_, name in classes:
            self._names[class_] = name
            self._classes[name] = class_
        for class_, name in self._names.items():
            self._descriptors[class_] = registry.register(self._build_descriptor(class_, name))


class SQLAResource(Resource):
    """
    Projects a SQLAlchemy mapped instance.  Relationships are read and written
    through the session the mapping holds.
    """

    mapping: SQLAMapping
    obj: typing.Any
    _descriptor: ResourceDescriptor

    @property
    def descriptor(self) -> ResourceDescriptor:
        return self._descriptor

    def get_id(self) -> str:
        return self.mapping.get_identity(self.obj)

    def set_id(self, id: str) -> None:
        sa_mapper = orm.object_mapper(self.obj)
        for col, value in zip(
            sa_mapper.primary_key, self.mapping.convert_identity(type(self.obj), id)
        ):
            setattr(self.obj, sa_mapper.get_property_by_column(col).key, value)

    def _load_attribute(self, attr: ResourceAttributeDescriptor) -> AttributeValue:
        return getattr(self.obj, attr.name)

    def _store_attribute(self, attr: ResourceAttributeDescriptor, value: AttributeValue) -> None:
        setattr(self.obj, attr.name, value)

    def _load_relationship(
        self, rel: ResourceRelationshipDescriptor
    ) -> typing.Union[str, typing.List[str]]:
        related = getattr(self.obj, rel.name)
        if rel.type is RelationshipType.TO_ONE:
            return self.mapping.get_identity(related) if related is not None else ""
        else:
            return [self.mapping.get_identity(r) for r in related]

    def _fetch(self, rel: ResourceRelationshipDescriptor, id: str) -> typing.Any:
        class_ = self.mapping._classes[rel.destination]
        obj = self.mapping.query(class_, id)
        if obj is None:
            raise InvalidStructureError(f'no "{rel.destination}" identified by "{id}"')
        return obj

    def _store_relationship(
        self, rel: ResourceRelationshipDescriptor, value: typing.Union[str, typing.List[str]]
    ) -> None:
        if rel.type is RelationshipType.TO_ONE:
            id_ = typing.cast(str, value)
            setattr(self.obj, rel.name, self._fetch(rel, id_) if id_ else None)
        else:
            setattr(self.obj, rel.name, [self._fetch(rel, id_) for id_ in value])

    def copy(self) -> GenericResource:
        """
        Returns a snapshot of the values that is detached from the mapped instance.
        """
        retval = GenericResource(self._descriptor, self.get_id())
        for name in self._descriptor.attributes:
            retval.set(name, self.get(name))
        for name, rel in self._descriptor.relationships.items():
            if rel.type is RelationshipType.TO_ONE:
                retval.set_to_one(name, self.get_to_one(name))
            else:
                retval.set_to_many(name, self.get_to_many(name))
        return retval

    def __init__(self, mapping: SQLAMapping, obj: typing.Any):
        self.mapping = mapping
        self.obj = obj
        self._descriptor = mapping.descriptor_of(type(obj))
