"""
:py:mod:`jsonapi_codec.marshaling` turns a :py:class:`Document` into a JSON:API payload.

Synopsis
--------

.. code-block:: python

   marshaler = Marshaler(registry, prefix="https://example.com", resolver=people.get)
   payload = marshaler.marshal(
       Document(data=article),
       Params(fields={"articles": {"title", "author"}}, relationship_data={"author": True}),
   )

The document itself is left untouched; resources resolved for inclusion are
collected in a copy of its inclusion set that only lives for the call.
"""

import datetime
import json
import logging
import typing

from .declarative import wrap
from .document import Document, InclusionSet
from .exceptions import (
    InvalidStructureError,
    MissingIdentifierValueError,
    RelationshipTypeMismatchError,
    UnknownPrimaryDataError,
    UnrenderableValueError,
)
from .models import RelationshipType
from .params import Params
from .registry import TypeRegistry
from .resource import Collection, Identifier, Identifiers, PrimaryData, Resource
from .serde.builders import (
    CollectionDocumentBuilder,
    DocumentBuilder,
    ErrorsDocumentBuilder,
    ResourceIdReprBuilder,
    ResourceReprBuilder,
    SingletonDocumentBuilder,
    ToManyRelDocumentBuilder,
    ToOneRelDocumentBuilder,
)
from .serde.models import DocumentRepr, LinksRepr
from .serde.renderer import ReprRenderer
from .serde.types import MutableJSONObject

logger = logging.getLogger(__name__)

Resolver = typing.Callable[[Identifier], typing.Optional[typing.Any]]
"""
Given an identifier, returns the full resource or ``None`` if it cannot be included.
"""


def _is_identifiers(data: typing.Any) -> bool:
    if isinstance(data, Identifiers):
        return True
    return isinstance(data, (list, tuple)) and all(isinstance(i, Identifier) for i in data)


def _has_descriptor(data: typing.Any) -> bool:
    return hasattr(type(data), "__jsonapi_descriptor__")


class Marshaler:
    """
    :param TypeRegistry registry: the registry the resources are described by.
    :param str prefix: prepended to every link.
    :param str version: the value of ``jsonapi.version``.
    :param bool render_links: whether resource and relationship links are emitted.
    :param Optional[Resolver] resolver: supplies the resources to include.
    :param Optional[datetime.tzinfo] assume_naive_timezone_as: the time zone naive timestamps are in.
    """

    _registry: TypeRegistry
    _prefix: str
    _version: str
    _render_links: bool
    _resolver: typing.Optional[Resolver]
    _renderer: ReprRenderer

    def _link(self, *components: str) -> str:
        return "/".join((self._prefix,) + components)

    def _resolve(self, ident: Identifier) -> typing.Optional[Resource]:
        if self._resolver is None:
            return None
        target = self._resolver(ident)
        if target is None:
            return None
        return wrap(target)

    def _collect_inclusions(
        self,
        included: InclusionSet,
        resource: Resource,
        params: Params,
        rel_data: typing.Mapping[str, typing.Sequence[str]],
        primary: PrimaryData,
    ) -> None:
        descr = self._registry.lookup(resource.get_type())
        fields = params.fields_for(descr.name)
        for name, rel in descr.relationships.items():
            if fields is not None and name not in fields:
                continue
            if not params.wants_data(descr.name, name, rel_data):
                continue
            self._registry.lookup(rel.destination)
            if rel.type is RelationshipType.TO_ONE:
                ids = [resource.get_to_one(name)]
            else:
                ids = resource.get_to_many(name)
            for id_ in ids:
                if not id_:
                    continue
                target = self._resolve(Identifier(id=id_, type=rel.destination))
                if target is None:
                    # link-only
                    continue
                if target.get_type() != rel.destination:
                    raise RelationshipTypeMismatchError(
                        descr, name, rel.destination, target.get_type()
                    )
                included.add(target, primary)

    def _populate_resource(
        self,
        builder: ResourceReprBuilder,
        resource: Resource,
        params: Params,
        rel_data: typing.Mapping[str, typing.Sequence[str]],
    ) -> None:
        descr = self._registry.lookup(resource.get_type())
        id_ = resource.get_id()
        if not id_:
            raise MissingIdentifierValueError(descr.name)
        builder.set_type(descr.name)
        builder.set_id(id_)
        fields = params.fields_for(descr.name)

        for name in descr.attributes:
            if fields is not None and name not in fields:
                continue
            builder.add_attribute(name, resource.get(name))

        for name, rel in descr.relationships.items():
            if fields is not None and name not in fields:
                continue
            self._registry.lookup(rel.destination)
            with_data = params.wants_data(descr.name, name, rel_data)
            if not with_data and not self._render_links:
                continue
            if rel.type is RelationshipType.TO_ONE:
                to_one = builder.next_to_one_relationship(name)
                if with_data:
                    target = resource.get_to_one(name)
                    if target:
                        b = to_one.set()
                        b.set_type(rel.destination)
                        b.set_id(target)
                    else:
                        to_one.nullify()
                linkage = to_one
            else:
                to_many = builder.next_to_many_relationship(name)
                if with_data:
                    for target in resource.get_to_many(name):
                        b = to_many.next()
                        b.set_type(rel.destination)
                        b.set_id(target)
                    to_many.done()
                linkage = to_many
            if self._render_links:
                linkage.links = LinksRepr(
                    self_=self._link(descr.name, id_, "relationships", name),
                    related=self._link(descr.name, id_, name),
                )

        if self._render_links:
            builder.links = LinksRepr(self_=self._link(descr.name, id_))

    def _populate_identifier(self, builder: ResourceIdReprBuilder, ident: Identifier) -> None:
        self._registry.lookup(ident.type)
        if not ident.id:
            raise MissingIdentifierValueError(ident.type)
        builder.set_type(ident.type)
        builder.set_id(ident.id)
        if ident.meta:
            builder.meta = dict(ident.meta)

    def _populate_included(
        self,
        doc_builder: DocumentBuilder,
        included: InclusionSet,
        params: Params,
        rel_data: typing.Mapping[str, typing.Sequence[str]],
    ) -> None:
        for resource in included.sorted():
            self._populate_resource(doc_builder.next_included(), resource, params, rel_data)

    def _populate_common(self, doc_builder: DocumentBuilder, doc: Document) -> None:
        if doc.links:
            try:
                doc_builder.links = LinksRepr.from_mapping(doc.links)
            except ValueError as e:
                raise InvalidStructureError(str(e))
        doc_builder.meta = dict(doc.meta)
        jsonapi = dict(doc.jsonapi)
        jsonapi.setdefault("version", self._version)
        doc_builder.jsonapi = jsonapi

    def build_repr(self, doc: Document, params: typing.Optional[Params] = None) -> DocumentRepr:
        """
        Builds the representation of ``doc``.

        :raises UnknownPrimaryDataError: if ``doc.data`` is none of the primary data variants.
        """
        params = Params() if params is None else params
        data = doc.data
        if data is not None and _has_descriptor(data):
            data = wrap(data)

        doc_builder: DocumentBuilder
        if doc.errors:
            logger.debug("marshaling %d error(s)", len(doc.errors))
            errors_builder = ErrorsDocumentBuilder()
            for error in doc.errors:
                errors_builder.add_error(error.to_repr())
            self._populate_common(errors_builder, doc)
            return errors_builder()

        included = InclusionSet()
        for resource in doc.included:
            included.add(resource, data)
        if isinstance(data, Resource):
            logger.debug("marshaling resource %s/%s", data.get_type(), data.get_id())
            singleton_builder = SingletonDocumentBuilder()
            assert singleton_builder.data is not None
            self._collect_inclusions(included, data, params, doc.rel_data, data)
            self._populate_resource(singleton_builder.data, data, params, doc.rel_data)
            doc_builder = singleton_builder
        elif isinstance(data, Collection):
            logger.debug("marshaling collection of %d resource(s)", len(data))
            collection_builder = CollectionDocumentBuilder()
            for resource in data:
                self._collect_inclusions(included, resource, params, doc.rel_data, data)
            for resource in data:
                self._populate_resource(collection_builder.next(), resource, params, doc.rel_data)
            doc_builder = collection_builder
        elif isinstance(data, Identifier):
            logger.debug("marshaling identifier %s/%s", data.type, data.id)
            to_one_builder = ToOneRelDocumentBuilder()
            self._populate_identifier(to_one_builder.set(), data)
            doc_builder = to_one_builder
        elif data is not None and _is_identifiers(data):
            logger.debug("marshaling %d identifier(s)", len(data))
            to_many_builder = ToManyRelDocumentBuilder()
            for ident in typing.cast(typing.Sequence[Identifier], data):
                self._populate_identifier(to_many_builder.next(), ident)
            doc_builder = to_many_builder
        elif data is None:
            logger.debug("marshaling null primary data")
            singleton_builder = SingletonDocumentBuilder()
            singleton_builder.nullify()
            doc_builder = singleton_builder
        else:
            raise UnknownPrimaryDataError(data)

        self._populate_included(doc_builder, included, params, doc.rel_data)
        logger.debug("%d resource(s) included", len(included))
        self._populate_common(doc_builder, doc)
        return typing.cast(DocumentRepr, doc_builder())

    def build(self, doc: Document, params: typing.Optional[Params] = None) -> MutableJSONObject:
        """
        Returns the top-level object of the payload as a JSON-compatible dictionary.

        :raises UnrenderableValueError: if an attribute or meta value cannot be rendered.
        """
        repr_ = self.build_repr(doc, params)
        try:
            return self._renderer(repr_)
        except (ValueError, TypeError) as e:
            raise UnrenderableValueError(str(e)) from e

    def marshal(self, doc: Document, params: typing.Optional[Params] = None) -> bytes:
        """
        Returns the UTF-8 encoded payload for ``doc``.
        """
        return json.dumps(self.build(doc, params), ensure_ascii=False).encode("utf-8")

    def __init__(
        self,
        registry: TypeRegistry,
        prefix: str = "",
        version: str = "1.0",
        render_links: bool = True,
        resolver: typing.Optional[Resolver] = None,
        assume_naive_timezone_as: typing.Optional[datetime.tzinfo] = None,
    ):
        self._registry = registry
        self._prefix = prefix.rstrip("/")
        self._version = version
        self._render_links = render_links
        self._resolver = resolver
        self._renderer = ReprRenderer(
            render_embedded_links=render_links,
            assume_naive_timezone_as=assume_naive_timezone_as,
        )
