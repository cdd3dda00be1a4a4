"""Readers that turn JSON or YAML documents into a validated gateway configuration."""

from __future__ import annotations

import json
from typing import Any

import yaml

from .config import Config, Flavor, decode, validate


class ConfigReadError(ValueError):
    """Raised when a configuration document cannot be parsed or is invalid."""

    def __init__(self, document_format: str, detail: object) -> None:
        self.document_format = document_format
        self.detail = str(detail)
        super().__init__(f"read {document_format} config failed: {detail}")


def _build(document: Any, flavor: Flavor) -> Config:
    try:
        return validate(decode(Config, document, flavor))
    except (ValueError, TypeError) as exc:
        raise ConfigReadError(flavor.value, exc) from exc


class JSONReader:
    """Reads a configuration written as JSON."""

    def read(self, data: bytes | str) -> Config:
        """Parse ``data`` and return the validated configuration."""
        try:
            document = json.loads(data)
        except ValueError as exc:
            raise ConfigReadError(Flavor.JSON.value, exc) from exc
        return _build(document, Flavor.JSON)


class YAMLReader:
    """Reads a configuration written as YAML."""

    def read(self, data: bytes | str) -> Config:
        """Parse ``data`` and return the validated configuration."""
        try:
            document = yaml.safe_load(data)
        except yaml.YAMLError as exc:
            raise ConfigReadError(Flavor.YAML.value, exc) from exc
        return _build(document, Flavor.YAML)