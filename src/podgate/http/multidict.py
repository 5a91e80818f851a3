"""Immutable multi-valued mappings for request metadata.

``QueryParams`` and ``Headers`` share one read-only base: each key maps to
a list of values, ``__getitem__`` returns the first, ``get_list`` returns
all. Headers fold keys to lower case; query keys are case-sensitive.

Query membership is what route predicates test, so a parameter given with
an empty value (``?fromSrc=``) counts as present.
"""

from collections.abc import Iterable, Iterator, Mapping
from urllib.parse import parse_qsl


class MultiDict(Mapping[str, str]):
    """Read-only ``Mapping[str, str]`` over ``key -> [values]``."""

    __slots__ = ("_data",)

    _data: dict[str, list[str]]

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()) -> None:
        data: dict[str, list[str]] = {}
        for key, value in pairs:
            data.setdefault(self._fold(key), []).append(value)
        object.__setattr__(self, "_data", data)

    def __setattr__(self, name: str, value: object) -> None:
        msg = f"{type(self).__name__} is immutable"
        raise AttributeError(msg)

    @staticmethod
    def _fold(key: str) -> str:
        return key

    def __getitem__(self, key: str) -> str:
        return self._data[self._fold(key)][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._fold(key) in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {v!r}" for k, v in self._data.items())
        return f"{type(self).__name__}({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(self._fold(key))
        return values[0] if values else default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._data.get(self._fold(key), ()))


class QueryParams(MultiDict):
    """Query string parameters parsed from raw ASGI bytes."""

    __slots__ = ("raw",)

    raw: bytes

    def __init__(self, query_string: bytes = b"") -> None:
        super().__init__(parse_qsl(query_string.decode("latin-1"), keep_blank_values=True))
        object.__setattr__(self, "raw", query_string)

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """Return value as int, or *default* if missing or not numeric."""
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Return value as bool (``true``/``1``/``yes``/``on`` -> True).

        A bare flag (``?all`` or ``?all=``) is treated as True.
        """
        value = self.get(key)
        if value is None:
            return default
        return value == "" or value.lower() in ("true", "1", "yes", "on")


class Headers(MultiDict):
    """Case-insensitive HTTP headers decoded from ASGI byte pairs."""

    __slots__ = ()

    def __init__(self, raw: Iterable[tuple[bytes, bytes]] = ()) -> None:
        super().__init__((k.decode("latin-1"), v.decode("latin-1")) for k, v in raw)

    @staticmethod
    def _fold(key: str) -> str:
        return key.lower()
