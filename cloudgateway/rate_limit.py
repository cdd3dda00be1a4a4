"""Filter that rejects requests once a rate limiter runs out."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from .exchange import ArgumentError, Context, Filter, string_arg

RATE_LIMIT = "RateLimit"

_KeyFunc = Callable[[Context], str]
_Builder = Callable[[Mapping[str, Any]], Any]


class RateLimitExceeded(Exception):
    """Raised when a request is over the limit."""

    def __init__(self, remaining: int) -> None:
        self.remaining = remaining
        super().__init__(f"rate limit exceeded: remaining {remaining}")


class InvalidRateLimitKey(ArgumentError):
    """Raised when no key function is registered under the given key."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"invalid rate limit key: {key}")


class InvalidRateLimitType(ArgumentError):
    """Raised when no limiter is registered under the given type."""

    def __init__(self, limiter_type: str) -> None:
        self.limiter_type = limiter_type
        super().__init__(f"invalid rate limit type: {limiter_type}")


@dataclass(frozen=True)
class RateLimit(Filter):
    """Asks the limiter whether the request's key may proceed.

    The limiter has ``allow(key)`` returning ``(allowed, remaining)``; the key
    function maps the exchange context to the key.
    """

    limiter: Any
    key_func: _KeyFunc | None

    def pre_process(self, ctx: Context) -> None:
        allowed, remaining = self.limiter.allow(self.key_func(ctx))
        if not allowed:
            raise RateLimitExceeded(remaining)

    def post_process(self, ctx: Context) -> None:
        return None

    def name(self) -> str:
        return RATE_LIMIT


def make_rate_limit_builder(
    limiter_builders: Mapping[str, _Builder],
    key_func_builders: Mapping[str, _Builder],
) -> Callable[[Mapping[str, Any]], RateLimit]:
    """Return a builder that picks a limiter by ``type`` and a key function by ``key``.

    The whole argument map is handed on to the chosen builders.
    """

    def build(args: Mapping[str, Any]) -> RateLimit:
        limiter_type = string_arg(args, "type")
        key = string_arg(args, "key")
        key_builder = key_func_builders.get(key)
        if key_builder is None:
            raise InvalidRateLimitKey(key)
        try:
            key_func = key_builder(args)
        except (ValueError, TypeError) as exc:
            raise ArgumentError(f"failed to build rate limit key: {exc}") from exc
        limiter_builder = limiter_builders.get(limiter_type)
        if limiter_builder is None:
            raise InvalidRateLimitType(limiter_type)
        try:
            limiter = limiter_builder(args)
        except (ValueError, TypeError) as exc:
            raise ArgumentError(f"failed to build rate limiter: {exc}") from exc
        return RateLimit(limiter, key_func)

    return build