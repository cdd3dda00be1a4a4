"""Filter that rewrites the request path with a regular expression."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from .exchange import ArgumentError, Context, Filter, string_arg

REWRITE_PATH = "RewritePath"
GATEWAY_ORIGINAL_REQUEST_ATTR = "GATEWAY_ORIGINAL_REQUEST_URL"

_NAMED_GROUP = re.compile(r"(?<!\\)\(\?<(?=[A-Za-z_])")
_NAME = re.compile(r"\w*")
_NUMBER = re.compile(r"[0-9]+")


def _extract(rest: str) -> tuple[str | None, int]:
    """Read a group reference after ``$``; return the name and characters consumed."""
    braced = rest.startswith("{")
    body = rest[1:] if braced else rest
    name = _NAME.match(body).group()
    if not name:
        return None, 0
    if braced:
        if body[len(name):len(name) + 1] != "}":
            return None, 0
        return name, len(name) + 2
    return name, len(name)


class RewritePath(Filter):
    """Rewrites the request path when it matches a pattern.

    The replacement may refer to groups as ``$1``, ``${1}``, ``$name`` or
    ``${name}``; ``$$`` stands for a literal dollar sign.
    """

    def __init__(self, regexp: str, replacement: str) -> None:
        self.regexp = regexp
        self.replacement = replacement.replace("$\\", "$")
        try:
            self._pattern = re.compile(_NAMED_GROUP.sub("(?P<", regexp))
        except re.error as exc:
            raise ArgumentError(f"failed to build rewrite path filter: {exc}") from exc

    def __repr__(self) -> str:
        return f"RewritePath(regexp={self.regexp!r}, replacement={self.replacement!r})"

    def _group_text(self, match: re.Match, name: str) -> str:
        number = -1
        if _NUMBER.fullmatch(name) and not (name[0] == "0" and len(name) > 1) and len(name) <= 8:
            number = int(name)
        if number >= 0:
            if number <= self._pattern.groups:
                return match.group(number) or ""
            return ""
        if name in self._pattern.groupindex:
            return match.group(name) or ""
        return ""

    def _expand(self, match: re.Match) -> str:
        template = self.replacement
        out = []
        pos = 0
        while True:
            dollar = template.find("$", pos)
            if dollar < 0:
                out.append(template[pos:])
                return "".join(out)
            out.append(template[pos:dollar])
            rest = template[dollar + 1:]
            if rest.startswith("$"):
                out.append("$")
                pos = dollar + 2
                continue
            name, consumed = _extract(rest)
            if name is None:
                out.append("$")
                pos = dollar + 1
                continue
            out.append(self._group_text(match, name))
            pos = dollar + 1 + consumed

    def _replace_all(self, text: str) -> str:
        pieces = []
        last = 0
        previous_end = None
        for match in self._pattern.finditer(text):
            if match.start() == match.end() == previous_end:
                continue
            pieces.append(text[last:match.start()])
            pieces.append(self._expand(match))
            last = previous_end = match.end()
        pieces.append(text[last:])
        return "".join(pieces)

    def pre_process(self, ctx: Context) -> None:
        """Rewrite the path, keeping the original URL in the context attributes."""
        url = ctx.request.url
        ctx.attributes[GATEWAY_ORIGINAL_REQUEST_ATTR] = url
        current = url.path
        if not self._pattern.search(current):
            return
        new_path = self._replace_all(current)
        if new_path == current:
            return
        host = url.netloc.rpartition("@")[2]
        ctx.request.url = url._replace(netloc=host, path=new_path)

    def post_process(self, ctx: Context) -> None:
        return None

    def name(self) -> str:
        return REWRITE_PATH


def build_rewrite_path(args: Mapping[str, Any]) -> RewritePath:
    """Build from the ``regexp`` and ``replacement`` arguments."""
    regexp = string_arg(args, "regexp")
    replacement = string_arg(args, "replacement")
    return RewritePath(regexp, replacement)