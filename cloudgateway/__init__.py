"""Gateway configuration model and JSON/YAML readers, plus header, path-rewrite, logging and rate-limit filters."""

__version__ = "0.1.0"