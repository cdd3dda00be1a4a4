"""Filter that logs requests and responses passing through a route."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlunsplit

from .exchange import Context, Filter

REQUEST_RESPONSE_LOGGER = "RequestResponseLogger"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def _body_text(body: bytes | None) -> str:
    return (body or b"").decode("utf-8", errors="replace")


@dataclass(frozen=True)
class RequestResponseLogger(Filter):
    """Logs the request before forwarding and the response on return.

    The details are passed as the record attributes ``url``, ``headers``,
    ``body`` and ``status`` and are also rendered into the message.
    """

    level: int = logging.INFO

    def pre_process(self, ctx: Context) -> None:
        if not ctx.logger.isEnabledFor(self.level):
            return
        request = ctx.request
        url = f"{request.method} {urlunsplit(request.url)}"
        headers = dict(request.headers)
        body = _body_text(request.body)
        ctx.logger.log(
            self.level,
            "Received request url=%s headers=%s body=%s",
            url,
            headers,
            body,
            extra={"url": url, "headers": headers, "body": body},
        )

    def post_process(self, ctx: Context) -> None:
        if not ctx.logger.isEnabledFor(self.level):
            return
        response = ctx.response
        headers = dict(response.headers)
        body = _body_text(response.body)
        ctx.logger.log(
            self.level,
            "Returned response status=%s headers=%s body=%s",
            response.status,
            headers,
            body,
            extra={"status": response.status, "headers": headers, "body": body},
        )

    def name(self) -> str:
        return REQUEST_RESPONSE_LOGGER


def build_request_response_logger(args: Mapping[str, Any]) -> RequestResponseLogger:
    """Build from the optional ``level`` argument; unknown levels mean info."""
    level = (args or {}).get("level")
    if not isinstance(level, str):
        level = ""
    return RequestResponseLogger(_LEVELS.get(level.lower(), logging.INFO))