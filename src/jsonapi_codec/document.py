import dataclasses
import typing
from collections import OrderedDict

from .errors import Error
from .resource import Collection, PrimaryData, Resource


def inclusion_key(type_name: str, id: str) -> str:
    return type_name + " " + id


class InclusionSet:
    """
    The resources to be side-loaded under ``included``, keyed by type and identifier.
    Adding a resource whose key is already present is a no-op.
    """

    _resources: "OrderedDict[str, Resource]"

    def add(self, resource: Resource, primary: PrimaryData = None) -> bool:
        """
        Adds ``resource`` unless it is already in the set or among the primary data ``primary``.

        :return: True if the resource was added.
        """
        key = inclusion_key(resource.get_type(), resource.get_id())
        if isinstance(primary, Resource):
            if inclusion_key(primary.get_type(), primary.get_id()) == key:
                return False
        elif isinstance(primary, Collection):
            for r in primary:
                if inclusion_key(r.get_type(), r.get_id()) == key:
                    return False
        if key in self._resources:
            return False
        self._resources[key] = resource
        return True

    def get(self, type_name: str, id: str) -> typing.Optional[Resource]:
        return self._resources.get(inclusion_key(type_name, id))

    def sorted(self) -> typing.List[Resource]:
        """
        Returns the resources ordered by identifier, then by type name.
        """
        return sorted(self._resources.values(), key=lambda r: (r.get_id(), r.get_type()))

    def clear(self) -> None:
        self._resources.clear()

    def __contains__(self, resource: typing.Any) -> bool:
        if not isinstance(resource, Resource):
            return False
        return inclusion_key(resource.get_type(), resource.get_id()) in self._resources

    def __iter__(self) -> typing.Iterator[Resource]:
        return iter(self._resources.values())

    def __len__(self) -> int:
        return len(self._resources)

    def __repr__(self) -> str:
        return f"InclusionSet({list(self._resources)!r})"

    def __init__(self, resources: typing.Iterable[Resource] = ()):
        self._resources = OrderedDict()
        for r in resources:
            self.add(r)


@dataclasses.dataclass
class Document:
    """
    A JSON:API top-level document.

    ``data`` holds at most one of the primary data variants: a
    :py:class:`Resource`, a :py:class:`Collection`, an :py:class:`Identifier`
    or :py:class:`Identifiers`.  When ``errors`` is not empty, the document is
    an error document and ``data`` is not emitted.

    ``rel_data`` maps a type name to the names of the relationships whose
    linkage data is emitted for resources of the type.
    """

    data: PrimaryData = None
    errors: typing.List[Error] = dataclasses.field(default_factory=list)
    included: InclusionSet = dataclasses.field(default_factory=InclusionSet)
    links: typing.Dict[str, str] = dataclasses.field(default_factory=dict)
    meta: typing.Dict[str, typing.Any] = dataclasses.field(default_factory=dict)
    jsonapi: typing.Dict[str, typing.Any] = dataclasses.field(default_factory=dict)
    rel_data: typing.Dict[str, typing.List[str]] = dataclasses.field(default_factory=dict)

    def include(self, resource: Resource) -> bool:
        return self.included.add(resource, self.data)
