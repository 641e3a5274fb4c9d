"""Shared test fixtures."""

from __future__ import annotations

from datetime import timedelta

import pytest

from ideascout.config import load_config
from ideascout.db import get_connection, init_db
from ideascout.llm import clear_provider_cache
from ideascout.models import RawItem, utcnow


@pytest.fixture
def sample_config(tmp_path):
    """Minimal config for testing (no real API keys, no LLM tasks)."""
    config_text = """
llm:
  providers:
    mock:
      type: "openai_compatible"
      api_key: "test-key"
      base_url: "http://localhost:9999"
      default_model: "test-model"
  tasks: {}

sources:
  hackernews:
    enabled: true
    queries: ["startup idea"]
  reddit:
    enabled: true
    subreddits: [startups]
  twitter:
    kind: websearch
    platform: twitter
    enabled: false
    api_key: ""

process:
  dedup:
    key: title
  cluster:
    strategy: keyword

pipeline:
  variant: professional
  request_delay: 0

database:
  path: "DB_PATH_PLACEHOLDER"
"""
    db_path = str(tmp_path / "test.db")
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(config_text.replace("DB_PATH_PLACEHOLDER", db_path))
    return load_config(str(cfg_path))


@pytest.fixture
def llm_config(sample_config):
    """sample_config with every LLM task routed to the mock provider."""
    config = dict(sample_config)
    config["llm"] = {
        **sample_config["llm"],
        "tasks": {
            "score": {"provider": "mock"},
            "similarity": {"provider": "mock"},
            "topic": {"provider": "mock"},
            "summary": {"provider": "mock"},
        },
    }
    config["process"] = {"dedup": {"key": "title"}, "cluster": {"strategy": "auto"}}
    return config


@pytest.fixture
def db_conn(sample_config):
    """Initialized test database connection."""
    db_path = sample_config["database"]["path"]
    init_db(db_path)
    conn = get_connection(db_path)
    yield conn
    conn.close()


@pytest.fixture(autouse=True)
def _fresh_providers():
    clear_provider_cache()
    yield
    clear_provider_cache()


def _make_item(
    title: str,
    description: str = "",
    platform: str = "hacker_news",
    url: str | None = None,
    hours_ago: float = 1,
    quality: float | None = None,
) -> RawItem:
    return RawItem(
        title=title,
        description=description,
        source_url=url or f"https://example.com/{platform}/{title.lower().replace(' ', '-')}",
        source_platform=platform,
        discovered_at=utcnow() - timedelta(hours=hours_ago),
        quality_score=quality,
    )


@pytest.fixture
def make_item():
    """Factory for unsaved items discovered a given number of hours ago."""
    return _make_item


@pytest.fixture
def sample_items():
    """Collected items from three platforms, two of them on one theme."""
    return [
        _make_item(
            "AI-powered workflow automation for SaaS teams",
            "An automation platform with API integration for B2B workflow management.",
            platform="twitter",
            quality=0.8,
        ),
        _make_item(
            "Workflow automation API for enterprise teams",
            "Open-source automation with API integration and workflow dashboards.",
            platform="github",
            quality=0.7,
        ),
        _make_item(
            "Meal planning app for families",
            "Plan weekly dinners and shopping lists together.",
            platform="reddit",
            quality=0.65,
        ),
    ]
