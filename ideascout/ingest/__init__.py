"""Source fetcher registry."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ideascout.ingest.base import BaseSource

SOURCES: dict[str, type[BaseSource]] = {}


def register_source(name: str):
    """Decorator to register a source fetcher."""

    def decorator(cls):
        SOURCES[name] = cls
        return cls

    return decorator


# Import implementations to trigger registration
from ideascout.ingest.github import GitHubSource  # noqa: E402, F401
from ideascout.ingest.hackernews import HackerNewsSource  # noqa: E402, F401
from ideascout.ingest.reddit import RedditSource  # noqa: E402, F401
from ideascout.ingest.websearch import WebSearchSource  # noqa: E402, F401
