"""Request and response state passed through gateway filters."""

from __future__ import annotations

import abc
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import SplitResult, urlsplit

_TOKEN_CHARS = frozenset(
    "!#$%&'*+-.^_`|~0123456789"
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
)


class ArgumentError(ValueError):
    """Raised when a filter or predicate argument is missing or malformed."""


def _canonical(name: str) -> str:
    if not name or any(ch not in _TOKEN_CHARS for ch in name):
        return name
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


class Headers(MutableMapping):
    """Multi-valued HTTP headers keyed case-insensitively by canonical name."""

    def __init__(self, initial: Mapping[str, Iterable[str]] | None = None) -> None:
        self._values: dict[str, list[str]] = {}
        for name, values in (initial or {}).items():
            self._values.setdefault(_canonical(name), []).extend(values)

    def __getitem__(self, name: str) -> list[str]:
        return self._values[_canonical(name)]

    def __setitem__(self, name: str, values: Iterable[str]) -> None:
        self._values[_canonical(name)] = list(values)

    def __delitem__(self, name: str) -> None:
        key = _canonical(name)
        if key not in self._values:
            raise KeyError(name)
        self._values.pop(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Headers({self._values!r})"

    def add(self, name: str, value: str) -> None:
        """Append a value to the header."""
        self._values.setdefault(_canonical(name), []).append(value)

    def set(self, name: str, value: str) -> None:
        """Replace every value of the header with ``value``."""
        self._values[_canonical(name)] = [value]

    def delete(self, name: str) -> None:
        """Remove the header; a missing header is ignored."""
        self._values.pop(_canonical(name), None)

    def get_all(self, name: str) -> list[str]:
        """Return a copy of all values of the header, empty when absent."""
        return list(self._values.get(_canonical(name), ()))


def _as_headers(value: Any) -> Headers:
    return value if isinstance(value, Headers) else Headers(value)


@dataclass
class Request:
    """An incoming request as seen by the filters."""

    method: str = "GET"
    url: SplitResult | str = ""
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""

    def __post_init__(self) -> None:
        if isinstance(self.url, str):
            self.url = urlsplit(self.url)
        self.headers = _as_headers(self.headers)
        if self.body is None:
            self.body = b""


@dataclass
class Response:
    """An upstream response as seen by the filters."""

    status: int = 200
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""

    def __post_init__(self) -> None:
        self.headers = _as_headers(self.headers)
        if self.body is None:
            self.body = b""


@dataclass
class Context:
    """The state of one exchange through the gateway."""

    route: Any = None
    request: Request | None = None
    response: Response | None = None
    attributes: dict[str, Any] = field(default_factory=dict)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("cloudgateway"))


class Filter(abc.ABC):
    """A step run before the request is forwarded and after the response returns.

    Either hook raises to stop the exchange.
    """

    @abc.abstractmethod
    def name(self) -> str:
        """Return the registered name of the filter."""

    def pre_process(self, ctx: Context) -> None:
        """Act on the request before it is forwarded."""
        return None

    def post_process(self, ctx: Context) -> None:
        """Act on the response after it returns."""
        return None


FilterBuilder = Callable[[Mapping[str, Any]], Filter]


def string_arg(args: Mapping[str, Any] | None, key: str) -> str:
    """Return the string argument ``key`` or raise ArgumentError."""
    value = (args or {}).get(key)
    if value is None:
        raise ArgumentError(f"failed to convert '{key}' attribute: value is required")
    if not isinstance(value, str):
        raise ArgumentError(
            f"failed to convert '{key}' attribute: expected a string, "
            f"got {type(value).__name__}"
        )
    return value