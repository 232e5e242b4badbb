import typing


def _escape(component: str) -> str:
    return component.replace("~", "~0").replace("/", "~1")


def _unescape(component: str) -> str:
    return component.replace("~1", "/").replace("~0", "~")


class JSONPointer:
    """
    An immutable `JSON Pointer <https://tools.ietf.org/html/rfc6901>`_.

    .. code-block:: python

       p = JSONPointer() / "data" / "attributes"
       str(p[0])  # "/data/attributes/0"
    """

    components: typing.Tuple[str, ...]

    def __truediv__(self, component: typing.Union[str, int]) -> "JSONPointer":
        return JSONPointer(components=self.components + (str(component),))

    def __getitem__(self, index: int) -> "JSONPointer":
        return self / index

    def __str__(self) -> str:
        if not self.components:
            return "/"
        return "".join("/" + _escape(c) for c in self.components)

    def __repr__(self) -> str:
        return f"JSONPointer({str(self)!r})"

    def __eq__(self, other: typing.Any) -> bool:
        if not isinstance(other, JSONPointer):
            return NotImplemented
        return self.components == other.components

    def __hash__(self) -> int:
        return hash(self.components)

    @classmethod
    def from_string(cls, value: str) -> "JSONPointer":
        if value in ("", "/"):
            return cls()
        if not value.startswith("/"):
            raise ValueError(f"invalid JSON pointer: {value!r}")
        return cls(components=tuple(_unescape(c) for c in value[1:].split("/")))

    def __init__(
        self,
        value: typing.Optional[str] = None,
        components: typing.Iterable[str] = (),
    ):
        if value is not None:
            self.components = JSONPointer.from_string(value).components
        else:
            self.components = tuple(components)
