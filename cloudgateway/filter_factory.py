"""Builds filters by name from a registry of builders."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from . import header_filters
from .exchange import Filter
from .request_logger import REQUEST_RESPONSE_LOGGER, build_request_response_logger
from .rewrite_path import REWRITE_PATH, build_rewrite_path

_Builder = Callable[[Mapping[str, Any]], Filter]


class FilterBuildError(ValueError):
    """Raised when a filter cannot be built."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"filter builder failed: {detail}")


def _describe(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "<nil>"
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda item: str(item[0]))
        return "map[" + " ".join(f"{key}:{_describe(val)}" for key, val in items) + "]"
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(_describe(item) for item in value) + "]"
    return str(value)


def default_registry() -> dict[str, _Builder]:
    """Return the built-in filter builders keyed by filter name.

    The rate limit filter depends on limiter and key registries, so it is
    added by callers through ``make_rate_limit_builder``.
    """
    return {
        header_filters.ADD_REQUEST_HEADER: header_filters.build_add_request_header,
        header_filters.SET_REQUEST_HEADER: header_filters.build_set_request_header,
        header_filters.REMOVE_REQUEST_HEADER: header_filters.build_remove_request_header,
        header_filters.ADD_RESPONSE_HEADER: header_filters.build_add_response_header,
        header_filters.SET_RESPONSE_HEADER: header_filters.build_set_response_header,
        header_filters.REMOVE_RESPONSE_HEADER: header_filters.build_remove_response_header,
        REQUEST_RESPONSE_LOGGER: build_request_response_logger,
        REWRITE_PATH: build_rewrite_path,
    }


class FilterFactory:
    """Looks up a builder by filter name and builds the filter from its arguments."""

    def __init__(self, registry: Mapping[str, _Builder] | None = None) -> None:
        self.registry = dict(default_registry() if registry is None else registry)

    def build(self, name: str, args: Mapping[str, Any] | None) -> Filter:
        """Build the filter ``name``; raise FilterBuildError when unknown or invalid."""
        builder = self.registry.get(name)
        if builder is None:
            raise FilterBuildError(f"filter builder not found for filter {name}")
        try:
            return builder(args or {})
        except (ValueError, TypeError) as exc:
            raise FilterBuildError(f"filter {name} and args {_describe(args or {})}") from exc