import dataclasses
import json

import pytest
import yaml

from cloudgateway.config import (
    MTLS,
    CircuitBreaker,
    Config,
    ConfigValidationError,
    Flavor,
    Gateway,
    HTTPClient,
    ParameterizedItem,
    Pool,
    Route,
    calculate_timeout,
    decode,
    validate,
)
from cloudgateway.duration import SECOND, Duration, DurationError


def _load(text, flavor):
    return json.loads(text) if flavor is Flavor.JSON else yaml.safe_load(text)


def _verify(cls, text, flavor, expected, expected_err):
    actual = decode(cls, _load(text, flavor), flavor)
    assert actual == expected
    if expected_err is None:
        assert validate(actual) is actual
    else:
        with pytest.raises(ConfigValidationError) as info:
            validate(actual)
        assert str(info.value) == expected_err


def _err(key, name, tag):
    return f"Key: '{key}' Error:Field validation for '{name}' failed on the '{tag}' tag"


MTLS_CASES = [
    ('{"enabled":false}', MTLS(enabled=False), None),
    (
        '{"enabled":true,"ca":"someCA","cert":"someCert","key":"someKey"}',
        MTLS(enabled=True, ca="someCA", cert="someCert", key="someKey"),
        None,
    ),
    (
        '{"enabled":true,"cert":"someCert","key":"someKey"}',
        MTLS(enabled=True, cert="someCert", key="someKey"),
        _err("MTLS.CA", "CA", "required_if"),
    ),
    (
        '{"enabled":true,"ca":"someCA","key":"someKey"}',
        MTLS(enabled=True, ca="someCA", key="someKey"),
        _err("MTLS.Cert", "Cert", "required_if"),
    ),
    (
        '{"enabled":true,"ca":"someCA","cert":"someCert"}',
        MTLS(enabled=True, ca="someCA", cert="someCert"),
        _err("MTLS.Key", "Key", "required_if"),
    ),
]


@pytest.mark.parametrize("flavor", list(Flavor))
@pytest.mark.parametrize("text, expected, expected_err", MTLS_CASES)
def test_mtls(flavor, text, expected, expected_err):
    _verify(MTLS, text, flavor, expected, expected_err)


def test_mtls_missing_enabled():
    with pytest.raises(ConfigValidationError) as info:
        validate(decode(MTLS, {}, Flavor.JSON))
    assert str(info.value) == _err("MTLS.Enabled", "Enabled", "required")


_POOL_INPUT = {
    "timeout": "10s",
    "max-idle-conns": 10,
    "max-idle-conns-per-host": 15,
    "max-conns-per-host": 20,
    "idle-conn-timeout": "15s",
    "tls-handshake-timeout": "20s",
    "keep-alive": "30s",
}
_POOL_FULL = Pool(
    timeout=Duration(10 * SECOND),
    max_idle_conns=10,
    max_idle_conns_per_host=15,
    max_conns_per_host=20,
    idle_conn_timeout=Duration(15 * SECOND),
    tls_handshake_timeout=Duration(20 * SECOND),
    keep_alive=Duration(30 * SECOND),
)
_POOL_MISSING = [
    ("timeout", "timeout", None, "Timeout"),
    ("max-idle-conns", "max_idle_conns", 0, "MaxIdleConns"),
    ("max-idle-conns-per-host", "max_idle_conns_per_host", 0, "MaxIdleConnsPerHost"),
    ("max-conns-per-host", "max_conns_per_host", 0, "MaxConnsPerHost"),
    ("idle-conn-timeout", "idle_conn_timeout", None, "IdleConnTimeout"),
    ("tls-handshake-timeout", "tls_handshake_timeout", None, "TLSHandshakeTimeout"),
]


@pytest.mark.parametrize("flavor", list(Flavor))
def test_pool_valid(flavor):
    _verify(Pool, json.dumps(_POOL_INPUT), flavor, _POOL_FULL, None)


@pytest.mark.parametrize("flavor", list(Flavor))
@pytest.mark.parametrize("key, attr, empty, label", _POOL_MISSING)
def test_pool_missing_field(flavor, key, attr, empty, label):
    data = {k: v for k, v in _POOL_INPUT.items() if k != key}
    expected = dataclasses.replace(_POOL_FULL, **{attr: empty})
    _verify(Pool, json.dumps(data), flavor, expected, _err(f"Pool.{label}", label, "required"))


PARAM_CASES = [
    (
        '{"name":"someName","args":{"someKey":"someValue"}}',
        ParameterizedItem(name="someName", args={"someKey": "someValue"}),
        None,
    ),
    ('{"name":"someName"}', ParameterizedItem(name="someName"), None),
    ("{}", ParameterizedItem(), _err("ParameterizedItem.Name", "Name", "required")),
]


@pytest.mark.parametrize("flavor", list(Flavor))
@pytest.mark.parametrize("text, expected, expected_err", PARAM_CASES)
def test_parameterized_item(flavor, text, expected, expected_err):
    _verify(ParameterizedItem, text, flavor, expected, expected_err)


P1 = [ParameterizedItem(name="p1")]
F1 = [ParameterizedItem(name="f1")]
T30 = Duration(30 * SECOND)

ROUTE_CASES = [
    (
        '{"id":"r1","uri":"someUri","timeout":"30s","predicates":[{"name":"p1"}],'
        '"filters":[{"name":"f1"}]}',
        Route(id="r1", uri="someUri", predicates=P1, filters=F1, timeout=T30),
        None,
    ),
    (
        '{"id":"r1","uri":"someUri","timeout":"30s","predicates":[{"name":"p1"}]}',
        Route(id="r1", uri="someUri", predicates=P1, timeout=T30),
        None,
    ),
    (
        '{"id":"r1","uri":"someUri","timeout":"30s","filters":[{"name":"f1"}]}',
        Route(id="r1", uri="someUri", filters=F1, timeout=T30),
        None,
    ),
    (
        '{"id":"r1","uri":"someUri","predicates":[{"name":"p1"}],"filters":[{"name":"f1"}]}',
        Route(id="r1", uri="someUri", predicates=P1, filters=F1, timeout=Duration()),
        None,
    ),
    (
        '{"id":"r1","timeout":"30s","predicates":[{"name":"p1"}],"filters":[{"name":"f1"}]}',
        Route(id="r1", predicates=P1, filters=F1, timeout=T30),
        _err("Route.URI", "URI", "required"),
    ),
    (
        '{"uri":"someUri","timeout":"30s","predicates":[{"name":"p1"}],"filters":[{"name":"f1"}]}',
        Route(uri="someUri", predicates=P1, filters=F1, timeout=T30),
        _err("Route.ID", "ID", "required"),
    ),
    (
        '{"id":"someID","uri":"someUri","timeout":"30s","predicates":[{"name":"p1"}],'
        '"filters":[{"name":"f1"}],"circuit-breaker":{"enabled":true}}',
        Route(
            id="someID",
            uri="someUri",
            predicates=P1,
            filters=F1,
            timeout=T30,
            circuit_breaker=CircuitBreaker(enabled=True),
        ),
        "\n".join(
            [
                _err("Route.CircuitBreaker.Interval", "Interval", "required_if"),
                _err(
                    "Route.CircuitBreaker.FailureRateThreshold",
                    "FailureRateThreshold",
                    "required_if",
                ),
                _err(
                    "Route.CircuitBreaker.NumAllowedHalfOpenCalls",
                    "NumAllowedHalfOpenCalls",
                    "required_if",
                ),
                _err(
                    "Route.CircuitBreaker.WaitDurationInOpenState",
                    "WaitDurationInOpenState",
                    "required_if",
                ),
                _err(
                    "Route.CircuitBreaker.MinRequestsThreshold",
                    "MinRequestsThreshold",
                    "required_if",
                ),
            ]
        ),
    ),
    (
        '{"id":"someID","uri":"someUri","timeout":"30s","predicates":[{"name":"p1"}],'
        '"filters":[{"name":"f1"}],"circuit-breaker":{"enabled":true,"interval":"30s",'
        '"failure-rate-threshold":10,"num-allowed-half-open-calls":10,'
        '"wait-duration-in-open-state":"10s","min-requests-threshold":10}}',
        Route(
            id="someID",
            uri="someUri",
            predicates=P1,
            filters=F1,
            timeout=T30,
            circuit_breaker=CircuitBreaker(
                enabled=True,
                interval=T30,
                failure_rate_threshold=10,
                num_allowed_half_open_calls=10,
                wait_duration_in_open_state=Duration(10 * SECOND),
                min_requests_threshold=10,
            ),
        ),
        None,
    ),
]


@pytest.mark.parametrize("flavor", list(Flavor))
@pytest.mark.parametrize("text, expected, expected_err", ROUTE_CASES)
def test_route(flavor, text, expected, expected_err):
    _verify(Route, text, flavor, expected, expected_err)


R1 = [Route(id="r1", uri="someUri")]

GATEWAY_CASES = [
    (
        '{"routes":[{"id":"r1","uri":"someUri"}],"global-filters":[{"name":"f1"}],'
        '"global-timeout":"30s","httpclient":{}}',
        Gateway(routes=R1, global_filters=F1, global_timeout=T30, http_client=HTTPClient()),
        None,
    ),
    (
        '{"routes":[{"id":"r1","uri":"someUri"}],"global-filters":[{"name":"f1"}],'
        '"global-timeout":"30s"}',
        Gateway(routes=R1, global_filters=F1, global_timeout=T30),
        None,
    ),
    (
        '{"routes":[{"id":"r1","uri":"someUri"}],"global-filters":[{"name":"f1"}],"httpclient":{}}',
        Gateway(routes=R1, global_filters=F1, http_client=HTTPClient()),
        None,
    ),
    (
        '{"routes":[{"id":"r1","uri":"someUri"}],"global-filters":[{}],'
        '"global-timeout":"30s","httpclient":{}}',
        Gateway(
            routes=R1,
            global_filters=[ParameterizedItem()],
            global_timeout=T30,
            http_client=HTTPClient(),
        ),
        _err("Gateway.GlobalFilters[0].Name", "Name", "required"),
    ),
    (
        '{"routes":[{"id":"r1","uri":"someUri"}],"global-timeout":"30s","httpclient":{}}',
        Gateway(routes=R1, global_timeout=T30, http_client=HTTPClient()),
        None,
    ),
    (
        '{"routes":[{"id":"r1"}],"global-filters":[{"name":"f1"}],'
        '"global-timeout":"30s","httpclient":{}}',
        Gateway(
            routes=[Route(id="r1")],
            global_filters=F1,
            global_timeout=T30,
            http_client=HTTPClient(),
        ),
        _err("Gateway.Routes[0].URI", "URI", "required"),
    ),
    (
        '{"routes":[],"global-filters":[{"name":"f1"}],"global-timeout":"30s","httpclient":{}}',
        Gateway(routes=[], global_filters=F1, global_timeout=T30, http_client=HTTPClient()),
        _err("Gateway.Routes", "Routes", "min"),
    ),
    (
        '{"global-filters":[{"name":"f1"}],"global-timeout":"30s","httpclient":{}}',
        Gateway(global_filters=F1, global_timeout=T30, http_client=HTTPClient()),
        _err("Gateway.Routes", "Routes", "required"),
    ),
]


@pytest.mark.parametrize("flavor", list(Flavor))
@pytest.mark.parametrize("text, expected, expected_err", GATEWAY_CASES)
def test_gateway(flavor, text, expected, expected_err):
    _verify(Gateway, text, flavor, expected, expected_err)


def test_config_namespace_in_errors():
    cfg = decode(Config, {"gateway": {"routes": [{"uri": "someUri"}]}}, Flavor.JSON)
    with pytest.raises(ConfigValidationError) as info:
        validate(cfg)
    assert str(info.value) == _err("Config.Gateway.Routes[0].ID", "ID", "required")
    assert info.value.failures[0].tag == "required"


def test_nested_pool_is_validated():
    cfg = decode(
        Config,
        {"gateway": {"routes": [{"id": "a", "uri": "b"}], "httpclient": {"pool": {}}}},
        Flavor.YAML,
    )
    with pytest.raises(ConfigValidationError) as info:
        validate(cfg)
    assert len(info.value.failures) == 7
    assert info.value.failures[0].key == "Config.Gateway.HTTPClient.Pool.Timeout"


def test_json_keys_match_case_insensitively():
    assert decode(Route, {"ID": "r1", "URI": "u"}, Flavor.JSON) == Route(id="r1", uri="u")
    assert decode(Route, {"ID": "r1"}, Flavor.YAML) == Route()


def test_null_document_gives_defaults():
    assert decode(Config, None, Flavor.JSON) == Config()


def test_wrong_type_is_rejected():
    with pytest.raises(TypeError) as info:
        decode(Route, {"id": 5}, Flavor.JSON)
    assert str(info.value) == "cannot decode int into Route.ID"


def test_bool_is_not_an_int():
    with pytest.raises(TypeError):
        decode(Pool, {"max-idle-conns": True}, Flavor.YAML)


def test_bad_duration_propagates():
    with pytest.raises(DurationError) as info:
        decode(Route, {"timeout": "hey"}, Flavor.JSON)
    assert str(info.value) == 'unmarshal duration failed: time: invalid duration "hey"'


@pytest.mark.parametrize(
    "route, global_, expected",
    [
        (Duration(5 * SECOND), Duration(7 * SECOND), Duration(5 * SECOND)),
        (Duration(), Duration(7 * SECOND), Duration(7 * SECOND)),
        (Duration(), Duration(), Duration(10 * SECOND)),
        (Duration(-1), Duration(-1), Duration(10 * SECOND)),
    ],
)
def test_calculate_timeout(route, global_, expected):
    assert calculate_timeout(route, global_) == expected