# cloudgateway

Building blocks for an HTTP API gateway:

- a typed configuration model with field validation,
- JSON and YAML readers for that configuration,
- request and response filters that act on one exchange through the gateway.

## Installation

```
pip install cloudgateway
```

Install the test extra and run pytest to run the test suite:

```
pip install "cloudgateway[test]"
pytest
```

## Reading configuration

A configuration document has a `gateway` section, and that section must have at
least one route. A duration can be written as a string such as `30s`, `1m30s` or
`300ms`, or as a whole number of nanoseconds.

```yaml
gateway:
  global-timeout: 30s
  global-filters:
    - name: RequestResponseLogger
      args:
        level: debug
  routes:
    - id: customers
      uri: http://localhost:8080
      timeout: 5s
      predicates:
        - name: Path
          args:
            patterns: ["/v1/customer/**"]
      filters:
        - name: RewritePath
          args:
            regexp: /v1/customer/(?<segment>.*)
            replacement: /api/$\{segment}
        - name: AddRequestHeader
          args:
            name: X-Gateway
            value: "true"
```

```python
from cloudgateway.reader import ConfigReadError, YAMLReader

with open("gateway.yaml", "rb") as fh:
    try:
        cfg = YAMLReader().read(fh.read())
    except ConfigReadError as exc:
        raise SystemExit(str(exc))

for route in cfg.gateway.routes:
    print(route.id, route.uri, route.timeout)
```

`cloudgateway.reader.JSONReader` reads the same structure from JSON, and there
keys also match without regard to case. Both readers raise `ConfigReadError`
when the document cannot be parsed or when validation fails. The error message
begins with `read json config failed:` or `read yaml config failed:` and then
gives the cause. For example, a route that has no `id` gives:

```
read yaml config failed: Key: 'Config.Gateway.Routes[0].ID' Error:Field validation for 'ID' failed on the 'required' tag
```

### The model

`cloudgateway.config` defines these dataclasses:

- `Config`
- `Gateway`
- `Route`
- `ParameterizedItem`
- `CircuitBreaker`
- `HTTPClient`
- `Pool`
- `MTLS`

It also provides two functions:

- `decode(cls, data, flavor)` builds one of these dataclasses from an already
  parsed document. `flavor` is `Flavor.JSON` or `Flavor.YAML`.
- `validate(obj)` checks the field rules. It returns the object when the rules
  hold, and raises `ConfigValidationError` otherwise. That error lists every
  failure, one per line.

The rules are these:

- Each route requires `id` and `uri`.
- The `routes` list is required and must have at least one entry.
- Each predicate or filter requires a `name`.
- Every `pool` field is required.
- In `mtls`, `enabled` is required.
- When `mtls` is enabled, `ca`, `cert` and `key` are required.
- When a circuit breaker is enabled, all of its numbers and durations are
  required.

Durations are `cloudgateway.duration.Duration` values, which count whole
nanoseconds. `Duration.to_timedelta()` converts one to a `timedelta`. The
following functions read durations:

- `parse_duration(text)` parses a text duration.
- `duration_from_json(value)` reads a decoded JSON value.
- `duration_from_yaml(value)` reads a decoded YAML value.

These raise `DurationError` for bad input, for example
`unmarshal duration failed: time: invalid duration "hey"`.

`calculate_timeout(route_timeout, global_timeout)` gives the timeout in effect
for a route. It uses the route's timeout if that is positive, otherwise the
global timeout if that is positive, otherwise `DEFAULT_TIMEOUT` (ten seconds).

## Exchanges and filters

`cloudgateway.exchange` holds the state that filters work on:

- `Headers` is a case-insensitive multi-valued mapping keyed by canonical header
  name. `add` appends a value, `set` replaces all values, `delete` removes the
  header, and `get_all` returns the values.
- `Request` has `method`, `url`, `headers` and `body`. A string URL is split with
  `urllib.parse.urlsplit`.
- `Response` has `status`, `headers` and `body`.
- `Context` has `request`, `response`, an `attributes` dict, `route` and a
  standard `logging.Logger`.
- `Filter` is the base class. Each filter has `pre_process(ctx)`, which runs
  before forwarding, `post_process(ctx)`, which runs on return, and `name()`.
  Either hook raises an exception to stop the exchange.

Built-in filters:

| Name                    | Where                                | Effect                                                    |
|-------------------------|--------------------------------------|-----------------------------------------------------------|
| `AddRequestHeader`      | `cloudgateway.header_filters`        | Appends a value to a request header                       |
| `SetRequestHeader`      | `cloudgateway.header_filters`        | Replaces a request header                                 |
| `RemoveRequestHeader`   | `cloudgateway.header_filters`        | Deletes a request header                                  |
| `AddResponseHeader`     | `cloudgateway.header_filters`        | Appends a value to a response header                      |
| `SetResponseHeader`     | `cloudgateway.header_filters`        | Replaces a response header                                |
| `RemoveResponseHeader`  | `cloudgateway.header_filters`        | Deletes a response header                                 |
| `RewritePath`           | `cloudgateway.rewrite_path`          | Rewrites the request path with a regular expression       |
| `RequestResponseLogger` | `cloudgateway.request_logger`        | Logs request and response at `debug`, `info`, `warn` or `error` (default `info`) |
| `RateLimit`             | `cloudgateway.rate_limit`            | Raises `RateLimitExceeded` when the limiter refuses       |

The following example rewrites a request path:

```python
from cloudgateway.exchange import Context, Request
from cloudgateway.rewrite_path import GATEWAY_ORIGINAL_REQUEST_ATTR, RewritePath

ctx = Context(request=Request(method="GET", url="https://example.org/v1/customer/person1"))
RewritePath("/v1/customer/(?<segment>.*)", "/api/$\\{segment}").pre_process(ctx)

print(ctx.request.url.path)                               # /api/person1
print(ctx.attributes[GATEWAY_ORIGINAL_REQUEST_ATTR].path)  # /v1/customer/person1
```

In the replacement, you can refer to a group as `$1`, `${1}`, `$name` or
`${name}`. Write `$$` for a literal dollar sign.

### Building filters by name

```python
from cloudgateway.filter_factory import FilterBuildError, FilterFactory, default_registry

factory = FilterFactory(default_registry())
add_header = factory.build("AddRequestHeader", {"name": "X-Test", "value": "True"})

try:
    factory.build("Invent", {})
except FilterBuildError as exc:
    print(exc)  # filter builder failed: filter builder not found for filter Invent
```

If a builder rejects its arguments, `FilterFactory.build` raises
`FilterBuildError`, for example
`filter builder failed: filter AddRequestHeader and args map[name:X-Test]`.

`default_registry()` does not include `RateLimit`, because that filter needs
limiters and key functions that you supply. Build it with
`make_rate_limit_builder(limiter_builders, key_func_builders)`. The resulting
builder picks a limiter by the `type` argument and a key function by the `key`
argument, and passes the whole argument map on to both. A limiter is any
object with `allow(key)` that returns `(allowed, remaining)`.

```python
from cloudgateway.rate_limit import make_rate_limit_builder

class Budget:
    def __init__(self, args):
        self.left = args["limit"]

    def allow(self, key):
        self.left -= 1
        return self.left >= 0, max(self.left, 0)

registry = default_registry()
registry["RateLimit"] = make_rate_limit_builder(
    {"budget": Budget},
    {"method": lambda args: (lambda ctx: ctx.request.method)},
)
limiter = FilterFactory(registry).build("RateLimit", {"type": "budget", "key": "method", "limit": 10})
```

## What this package does not do

This package contains no gateway server and no proxy. Nothing listens for
requests, matches routes or forwards traffic upstream.

Predicates (such as `Path` above) are read and validated as configuration
items, but nothing here builds or evaluates them.

The `httpclient` settings (pool, mTLS, HTTP/2) and the per-route
`circuit-breaker` settings are decoded and validated only. No HTTP client and
no circuit breaker are built from them.

No rate limiter or key function is included. You supply them through
`make_rate_limit_builder`.