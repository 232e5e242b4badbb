import dataclasses
import typing

from .exceptions import UnknownFieldError

if typing.TYPE_CHECKING:
    from .registry import TypeRegistry  # noqa: F401


@dataclasses.dataclass(init=False)
class Params:
    """
    The already parsed query parameters the marshaling pipeline consumes.

    :param fields: sparse fieldsets; maps a type name to the names of the fields to emit.
    :param relationship_data: maps a relationship name to whether its data is to be emitted.
    """

    fields: typing.Dict[str, typing.Set[str]] = dataclasses.field(default_factory=dict)
    relationship_data: typing.Dict[str, bool] = dataclasses.field(default_factory=dict)

    def fields_for(self, type_name: str) -> typing.Optional[typing.AbstractSet[str]]:
        """
        Returns the fields to emit for ``type_name``, or ``None`` when every
        declared field is to be emitted.
        """
        return self.fields.get(type_name)

    def wants_data(
        self,
        type_name: str,
        rel_name: str,
        rel_data: typing.Optional[typing.Mapping[str, typing.Sequence[str]]] = None,
    ) -> bool:
        if rel_data is not None and rel_name in rel_data.get(type_name, ()):
            return True
        return self.relationship_data.get(rel_name, False)

    def validate(self, registry: "TypeRegistry") -> None:
        """
        :raises UnknownResourceTypeError: if ``fields`` names an unknown type.
        :raises UnknownFieldError: if ``fields`` names a field the type does not have.
        """
        for type_name, names in self.fields.items():
            descr = registry.lookup(type_name)
            unknown = sorted(n for n in names if not descr.has_field(n))
            if unknown:
                raise UnknownFieldError(type_name, unknown)

    def __init__(
        self,
        fields: typing.Optional[typing.Mapping[str, typing.Iterable[str]]] = None,
        relationship_data: typing.Optional[typing.Mapping[str, bool]] = None,
    ):
        self.fields = {k: set(v) for k, v in (fields or {}).items()}
        self.relationship_data = dict(relationship_data or {})
