from __future__ import annotations


class RootGenError(Exception):
    pass


class ConfigError(RootGenError):
    pass


class GenerateError(RootGenError):
    """The output sink failed; wraps the underlying ``OSError``."""
