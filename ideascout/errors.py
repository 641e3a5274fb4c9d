"""Exception types shared across the pipeline."""

from __future__ import annotations


class IdeaScoutError(Exception):
    """Base class for pipeline errors."""


class ConfigError(IdeaScoutError):
    """Missing or invalid configuration (credentials, paths, providers).

    Fatal for the invocation that hits it.
    """
