"""Gateway configuration model, decoding and validation."""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from .duration import SECOND, Duration, duration_from_json, duration_from_yaml

DEFAULT_TIMEOUT = Duration(10 * SECOND)
DEFAULT_KEEP_ALIVE = Duration(30 * SECOND)
CONTINUE_DEFAULT_TIMEOUT = Duration(0)
DEFAULT_IDLE_CONN_TIMEOUT = Duration(60 * SECOND)
DEFAULT_CONNS = 200


class Flavor(enum.Enum):
    """The document format a configuration was decoded from."""

    JSON = "json"
    YAML = "yaml"


def _spec(
    key: str,
    label: str,
    kind: str,
    *,
    default: Any = None,
    factory: Any = None,
    item: type | None = None,
    nullable: bool = False,
    required: bool = False,
    required_if: tuple[str, Any] | None = None,
    min_len: int | None = None,
    dive: bool = False,
) -> Any:
    metadata = {
        "key": key,
        "label": label,
        "kind": kind,
        "item": item,
        "nullable": nullable,
        "required": required,
        "required_if": required_if,
        "min_len": min_len,
        "dive": dive,
    }
    if factory is not None:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


@dataclass
class MTLS:
    """Client certificate settings for upstream connections."""

    enabled: bool | None = _spec("enabled", "Enabled", "bool", nullable=True, required=True)
    ca: str = _spec("ca", "CA", "str", default="", required_if=("enabled", True))
    cert: str = _spec("cert", "Cert", "str", default="", required_if=("enabled", True))
    key: str = _spec("key", "Key", "str", default="", required_if=("enabled", True))


@dataclass
class Pool:
    """Connection pool settings for the upstream HTTP client."""

    timeout: Duration | None = _spec("timeout", "Timeout", "duration", nullable=True, required=True)
    keep_alive: Duration | None = _spec(
        "keep-alive", "KeepAlive", "duration", nullable=True, required=True
    )
    idle_conn_timeout: Duration | None = _spec(
        "idle-conn-timeout", "IdleConnTimeout", "duration", nullable=True, required=True
    )
    tls_handshake_timeout: Duration | None = _spec(
        "tls-handshake-timeout", "TLSHandshakeTimeout", "duration", nullable=True, required=True
    )
    max_idle_conns: int = _spec("max-idle-conns", "MaxIdleConns", "int", default=0, required=True)
    max_idle_conns_per_host: int = _spec(
        "max-idle-conns-per-host", "MaxIdleConnsPerHost", "int", default=0, required=True
    )
    max_conns_per_host: int = _spec(
        "max-conns-per-host", "MaxConnsPerHost", "int", default=0, required=True
    )


@dataclass
class HTTPClient:
    """Upstream HTTP client settings."""

    mtls: MTLS | None = _spec("mtls", "MTLS", "struct", item=MTLS, nullable=True)
    pool: Pool | None = _spec("pool", "Pool", "struct", item=Pool, nullable=True)
    insecure_tls_verify: bool = _spec(
        "insecure-tls-verify", "InsecureTLSVerify", "bool", default=False
    )
    enable_http2: bool = _spec("enable-http2", "EnableHTTP2", "bool", default=False)


@dataclass
class ParameterizedItem:
    """A named predicate or filter together with its arguments."""

    args: dict[str, Any] | None = _spec("args", "Args", "map")
    name: str = _spec("name", "Name", "str", default="", required=True)


@dataclass
class CircuitBreaker:
    """Circuit breaker settings of a route; the numbers are required once enabled."""

    enabled: bool = _spec("enabled", "Enabled", "bool", default=False)
    interval: Duration = _spec(
        "interval", "Interval", "duration", default=Duration(), required_if=("enabled", True)
    )
    failure_rate_threshold: int = _spec(
        "failure-rate-threshold",
        "FailureRateThreshold",
        "int",
        default=0,
        required_if=("enabled", True),
    )
    num_allowed_half_open_calls: int = _spec(
        "num-allowed-half-open-calls",
        "NumAllowedHalfOpenCalls",
        "int",
        default=0,
        required_if=("enabled", True),
    )
    wait_duration_in_open_state: Duration = _spec(
        "wait-duration-in-open-state",
        "WaitDurationInOpenState",
        "duration",
        default=Duration(),
        required_if=("enabled", True),
    )
    min_requests_threshold: int = _spec(
        "min-requests-threshold",
        "MinRequestsThreshold",
        "int",
        default=0,
        required_if=("enabled", True),
    )


@dataclass
class Route:
    """A single gateway route."""

    id: str = _spec("id", "ID", "str", default="", required=True)
    uri: str = _spec("uri", "URI", "str", default="", required=True)
    predicates: list[ParameterizedItem] | None = _spec(
        "predicates", "Predicates", "list", item=ParameterizedItem, dive=True
    )
    filters: list[ParameterizedItem] | None = _spec(
        "filters", "Filters", "list", item=ParameterizedItem, dive=True
    )
    timeout: Duration = _spec("timeout", "Timeout", "duration", default=Duration())
    circuit_breaker: CircuitBreaker = _spec(
        "circuit-breaker", "CircuitBreaker", "struct", item=CircuitBreaker, factory=CircuitBreaker
    )


@dataclass
class Gateway:
    """The gateway section: routes, global filters and client settings."""

    http_client: HTTPClient | None = _spec(
        "httpclient", "HTTPClient", "struct", item=HTTPClient, nullable=True
    )
    routes: list[Route] | None = _spec(
        "routes", "Routes", "list", item=Route, required=True, min_len=1, dive=True
    )
    global_filters: list[ParameterizedItem] | None = _spec(
        "global-filters", "GlobalFilters", "list", item=ParameterizedItem, dive=True
    )
    global_timeout: Duration = _spec(
        "global-timeout", "GlobalTimeout", "duration", default=Duration()
    )


@dataclass
class Config:
    """The whole configuration document."""

    gateway: Gateway = _spec("gateway", "Gateway", "struct", item=Gateway, factory=Gateway)


def _type_name(value: Any) -> str:
    return "null" if value is None else type(value).__name__


def _lookup(data: Mapping, key: str, flavor: Flavor) -> Any:
    if key in data:
        return data[key]
    if flavor is Flavor.JSON:
        folded = key.casefold()
        for candidate, value in data.items():
            if isinstance(candidate, str) and candidate.casefold() == folded:
                return value
    return None


def _decode_value(raw: Any, meta: Mapping, flavor: Flavor, where: str) -> Any:
    kind = meta["kind"]
    if kind == "duration":
        return duration_from_json(raw) if flavor is Flavor.JSON else duration_from_yaml(raw)
    if kind == "struct":
        return decode(meta["item"], raw, flavor)
    if kind == "list":
        if not isinstance(raw, list):
            raise TypeError(f"cannot decode {_type_name(raw)} into {where}")
        return [decode(meta["item"], entry, flavor) for entry in raw]
    if kind == "map":
        if not isinstance(raw, Mapping):
            raise TypeError(f"cannot decode {_type_name(raw)} into {where}")
        return {str(key): value for key, value in raw.items()}
    expected = {"str": str, "int": int, "bool": bool}[kind]
    if not isinstance(raw, expected) or (kind == "int" and isinstance(raw, bool)):
        raise TypeError(f"cannot decode {_type_name(raw)} into {where}")
    return raw


def decode(cls: type, data: Any, flavor: Flavor) -> Any:
    """Build a configuration object of type ``cls`` from a decoded document.

    Absent and null keys keep their defaults; unknown keys are ignored.
    JSON keys also match case-insensitively.
    """
    if data is None:
        return cls()
    if not isinstance(data, Mapping):
        raise TypeError(f"cannot decode {_type_name(data)} into {cls.__name__}")
    values = {}
    for spec in dataclasses.fields(cls):
        meta = spec.metadata
        raw = _lookup(data, meta["key"], flavor)
        if raw is None:
            continue
        values[spec.name] = _decode_value(raw, meta, flavor, f"{cls.__name__}.{meta['label']}")
    return cls(**values)


class _Failure(NamedTuple):
    key: str
    field: str
    tag: str

    def __str__(self) -> str:
        return (
            f"Key: '{self.key}' Error:Field validation for '{self.field}' "
            f"failed on the '{self.tag}' tag"
        )


class ConfigValidationError(ValueError):
    """Raised when a configuration object breaks one or more field rules."""

    def __init__(self, failures: list[_Failure]) -> None:
        self.failures = tuple(failures)
        super().__init__("\n".join(str(failure) for failure in self.failures))


def _has_value(value: Any, meta: Mapping) -> bool:
    if value is None:
        return False
    if meta["nullable"] or meta["kind"] in ("list", "map"):
        return True
    return bool(value)


def _failed_tag(obj: Any, value: Any, meta: Mapping) -> str | None:
    present = _has_value(value, meta)
    if meta["required"] and not present:
        return "required"
    condition = meta["required_if"]
    if condition is not None and getattr(obj, condition[0]) == condition[1] and not present:
        return "required_if"
    if meta["min_len"] is not None and len(value or ()) < meta["min_len"]:
        return "min"
    return None


def _check(obj: Any, namespace: str):
    for spec in dataclasses.fields(obj):
        meta = spec.metadata
        label = meta["label"]
        value = getattr(obj, spec.name)
        key = f"{namespace}.{label}"
        tag = _failed_tag(obj, value, meta)
        if tag is not None:
            yield _Failure(key, label, tag)
            continue
        if meta["dive"] and value:
            for index, item in enumerate(value):
                yield from _check(item, f"{key}[{index}]")
        elif meta["kind"] == "struct" and value is not None:
            yield from _check(value, key)


def validate(obj: Any) -> Any:
    """Check every field rule of ``obj`` and its nested sections.

    Returns ``obj`` when it is valid, raises ConfigValidationError otherwise.
    """
    failures = list(_check(obj, type(obj).__name__))
    if failures:
        raise ConfigValidationError(failures)
    return obj


def calculate_timeout(route_timeout: Duration, global_timeout: Duration) -> Duration:
    """Pick the route timeout, else the global one, else the default."""
    if route_timeout.nanoseconds > 0:
        return route_timeout
    if global_timeout.nanoseconds > 0:
        return global_timeout
    return DEFAULT_TIMEOUT