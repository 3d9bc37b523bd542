"""JSON paths addressing a location inside a value or a field tree.

A path is a sequence of segments rooted at ``$``:

- a string is a mapping key,
- an int is a sequence index,
- ``*`` selects every element of a sequence,
- ``<`` / ``<N`` select the last / Nth-from-last element,
- ``>`` / ``>N`` select the first / Nth element.

``$.address.city``, ``$.items.0`` and ``$.tags.*`` are valid textual paths.
Selectors only have meaning on sequences; on a mapping every segment is a key.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Union

from schemigrate.core.exceptions import PathSyntaxError

Segment = Union[str, int]

WILDCARD = "*"
_SELECTOR = re.compile(r"^([<>])([0-9]*)$")


def resolve_index(segment: Segment, length: int) -> int | None:
    """Resolve an index or ``<``/``>`` selector against a sequence length.

    Returns:
        The concrete index, or None when it falls outside the sequence

    Raises:
        PathSyntaxError: If the segment is not an index or positional selector
    """
    if isinstance(segment, int):
        return segment if 0 <= segment < length else None

    match = _SELECTOR.match(segment)
    if not match:
        raise PathSyntaxError(segment)
    direction, count = match.groups()
    nth = int(count) if count else 1
    if nth < 1 or nth > length:
        return None
    return length - nth if direction == "<" else nth - 1


@dataclass(frozen=True)
class JsonPath:
    """An immutable JSON path."""

    segments: tuple = ()

    def __post_init__(self):
        object.__setattr__(self, "segments", tuple(self.segments))
        for segment in self.segments:
            if isinstance(segment, bool) or not isinstance(segment, (str, int)):
                raise PathSyntaxError(repr(segment))
            if isinstance(segment, int) and segment < 0:
                raise PathSyntaxError(str(segment))

    @classmethod
    def parse(cls, text: str) -> "JsonPath":
        """Parse a textual path such as ``$.a.0``.

        Raises:
            PathSyntaxError: If the text does not start at the root ``$``
        """
        parts = text.split(".")
        if parts[0] != "$" or any(part == "" for part in parts[1:]):
            raise PathSyntaxError(text)
        return cls(tuple(int(part) if part.isascii() and part.isdigit() else part for part in parts[1:]))

    @classmethod
    def coerce(cls, path: Union["JsonPath", str, Iterable[Segment], None]) -> "JsonPath":
        """Accept a JsonPath, a ``$``-string or a sequence of segments."""
        if path is None:
            return cls()
        if isinstance(path, JsonPath):
            return path
        if isinstance(path, str):
            return cls.parse(path)
        return cls(tuple(path))

    @property
    def is_root(self) -> bool:
        return not self.segments

    @property
    def parent(self) -> "JsonPath | None":
        if self.is_root:
            return None
        return JsonPath(self.segments[:-1])

    @property
    def last(self) -> Segment | None:
        return self.segments[-1] if self.segments else None

    def child(self, segment: Segment) -> "JsonPath":
        return JsonPath(self.segments + (segment,))

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        return "".join(["$"] + [f".{segment}" for segment in self.segments])

    def __repr__(self) -> str:
        return f"JsonPath('{self}')"


ROOT = JsonPath()
