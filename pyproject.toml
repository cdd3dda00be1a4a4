[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cloudgateway"
version = "0.1.0"
description = "Configuration model, readers and request/response filters for an HTTP API gateway"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["gateway", "api-gateway", "filters", "configuration", "rate-limit", "yaml"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["cloudgateway"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
