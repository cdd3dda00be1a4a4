"""Filters that add, set or remove request and response headers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .exchange import Context, Filter, string_arg

ADD_REQUEST_HEADER = "AddRequestHeader"
SET_REQUEST_HEADER = "SetRequestHeader"
REMOVE_REQUEST_HEADER = "RemoveRequestHeader"
ADD_RESPONSE_HEADER = "AddResponseHeader"
SET_RESPONSE_HEADER = "SetResponseHeader"
REMOVE_RESPONSE_HEADER = "RemoveResponseHeader"


@dataclass(frozen=True)
class AddRequestHeader(Filter):
    """Appends a value to a request header."""

    header_name: str
    header_value: str

    def pre_process(self, ctx: Context) -> None:
        ctx.request.headers.add(self.header_name, self.header_value)

    def post_process(self, ctx: Context) -> None:
        return None

    def name(self) -> str:
        return ADD_REQUEST_HEADER


@dataclass(frozen=True)
class SetRequestHeader(Filter):
    """Replaces a request header with a single value."""

    header_name: str
    header_value: str

    def pre_process(self, ctx: Context) -> None:
        ctx.request.headers.set(self.header_name, self.header_value)

    def post_process(self, ctx: Context) -> None:
        return None

    def name(self) -> str:
        return SET_REQUEST_HEADER


@dataclass(frozen=True)
class RemoveRequestHeader(Filter):
    """Removes a request header."""

    header_name: str

    def pre_process(self, ctx: Context) -> None:
        ctx.request.headers.delete(self.header_name)

    def post_process(self, ctx: Context) -> None:
        return None

    def name(self) -> str:
        return REMOVE_REQUEST_HEADER


@dataclass(frozen=True)
class AddResponseHeader(Filter):
    """Appends a value to a response header."""

    header_name: str
    header_value: str

    def pre_process(self, ctx: Context) -> None:
        return None

    def post_process(self, ctx: Context) -> None:
        ctx.response.headers.add(self.header_name, self.header_value)

    def name(self) -> str:
        return ADD_RESPONSE_HEADER


@dataclass(frozen=True)
class SetResponseHeader(Filter):
    """Replaces a response header with a single value."""

    header_name: str
    header_value: str

    def pre_process(self, ctx: Context) -> None:
        return None

    def post_process(self, ctx: Context) -> None:
        ctx.response.headers.set(self.header_name, self.header_value)

    def name(self) -> str:
        return SET_RESPONSE_HEADER


@dataclass(frozen=True)
class RemoveResponseHeader(Filter):
    """Removes a response header."""

    header_name: str

    def pre_process(self, ctx: Context) -> None:
        return None

    def post_process(self, ctx: Context) -> None:
        ctx.response.headers.delete(self.header_name)

    def name(self) -> str:
        return REMOVE_RESPONSE_HEADER


def build_add_request_header(args: Mapping[str, Any]) -> AddRequestHeader:
    """Build from the ``name`` and ``value`` arguments."""
    return AddRequestHeader(string_arg(args, "name"), string_arg(args, "value"))


def build_set_request_header(args: Mapping[str, Any]) -> SetRequestHeader:
    """Build from the ``name`` and ``value`` arguments."""
    return SetRequestHeader(string_arg(args, "name"), string_arg(args, "value"))


def build_remove_request_header(args: Mapping[str, Any]) -> RemoveRequestHeader:
    """Build from the ``name`` argument."""
    return RemoveRequestHeader(string_arg(args, "name"))


def build_add_response_header(args: Mapping[str, Any]) -> AddResponseHeader:
    """Build from the ``name`` and ``value`` arguments."""
    return AddResponseHeader(string_arg(args, "name"), string_arg(args, "value"))


def build_set_response_header(args: Mapping[str, Any]) -> SetResponseHeader:
    """Build from the ``name`` and ``value`` arguments."""
    return SetResponseHeader(string_arg(args, "name"), string_arg(args, "value"))


def build_remove_response_header(args: Mapping[str, Any]) -> RemoveResponseHeader:
    """Build from the ``name`` argument."""
    return RemoveResponseHeader(string_arg(args, "name"))