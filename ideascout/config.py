"""Load and validate configuration from YAML with env var substitution."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ideascout.errors import ConfigError
from ideascout.models import CREDENTIAL_KEYS, SourceConfig

LLM_TASKS = ("score", "similarity", "topic", "summary")


@dataclass(frozen=True)
class VariantProfile:
    """Thresholds and weights for one flavour of the pipeline.

    ``basic`` is the lenient single-score pipeline, ``professional`` the
    stricter business-weighted one. Both run through the same code.
    """

    name: str
    # content_quality, business_viability, market_timing,
    # technical_feasibility, competitive_advantage
    weights: tuple[float, float, float, float, float]
    high_value_threshold: float
    delegated_score_count: int
    scoring_lookback_hours: int
    scoring_limit: int
    cluster_lookback_days: int
    cluster_min_quality: float | None
    cluster_limit: int
    min_members: int
    min_platforms: int
    similarity_threshold: float
    similarity_batch_size: int
    similarity_max_candidates: int
    correlation_platform_cap: int
    quality_weighted_velocity: bool
    fallback_topic: str


BASIC = VariantProfile(
    name="basic",
    weights=(0.2, 0.3, 0.2, 0.2, 0.1),
    high_value_threshold=0.7,
    delegated_score_count=1,
    scoring_lookback_hours=24,
    scoring_limit=10,
    cluster_lookback_days=7,
    cluster_min_quality=None,
    cluster_limit=20,
    min_members=2,
    min_platforms=1,
    similarity_threshold=0.7,
    similarity_batch_size=1,
    similarity_max_candidates=5,
    correlation_platform_cap=4,
    quality_weighted_velocity=False,
    fallback_topic="Related Business Opportunities",
)

PROFESSIONAL = VariantProfile(
    name="professional",
    weights=(0.15, 0.30, 0.20, 0.20, 0.15),
    high_value_threshold=0.75,
    delegated_score_count=4,
    scoring_lookback_hours=72,
    scoring_limit=100,
    cluster_lookback_days=7,
    cluster_min_quality=0.6,
    cluster_limit=200,
    min_members=2,
    min_platforms=2,
    similarity_threshold=0.75,
    similarity_batch_size=10,
    similarity_max_candidates=50,
    correlation_platform_cap=3,
    quality_weighted_velocity=True,
    fallback_topic="Professional Business Opportunity",
)

VARIANTS = {v.name: v for v in (BASIC, PROFESSIONAL)}


def _load_dotenv(path: str | Path = ".env") -> None:
    """Load a .env file into os.environ (without overwriting existing vars)."""
    env_path = Path(path)
    if not env_path.is_file():
        return
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip().strip("'\"")
            if key and key not in os.environ:
                os.environ[key] = value


def _resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ${ENV_VAR} patterns in config values."""
    if isinstance(value, str):
        pattern = re.compile(r"\$\{([^}]+)\}")
        match = pattern.search(value)
        if match:
            # A value that is exactly one reference resolves to that variable
            if match.group(0) == value:
                return os.environ.get(match.group(1), "")
            return pattern.sub(lambda m: os.environ.get(m.group(1), ""), value)
        return value
    if isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


def load_config(path: str | Path = "config.yaml") -> dict[str, Any]:
    """Load config from YAML file and resolve environment variables.

    This is the only place the process environment is read; everything
    downstream receives the resulting dict.
    """
    _load_dotenv()

    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    return _resolve_env_vars(raw)


def validate_config(config: dict) -> None:
    """Raise ConfigError for settings no job can run without."""
    if not get_db_path(config):
        raise ConfigError("database.path is not set")

    variant = config.get("pipeline", {}).get("variant", "professional")
    if variant not in VARIANTS:
        raise ConfigError(
            f"Unknown pipeline variant '{variant}' "
            f"(expected one of: {', '.join(VARIANTS)})"
        )

    llm = config.get("llm", {})
    if not llm.get("enabled", True):
        return

    providers = llm.get("providers", {})
    for task, task_cfg in llm.get("tasks", {}).items():
        provider_name = (task_cfg or {}).get("provider", "")
        if provider_name not in providers:
            raise ConfigError(
                f"LLM task '{task}' references unknown provider '{provider_name}'"
            )
        provider_cfg = providers[provider_name]
        if "api_key" in provider_cfg and not provider_cfg["api_key"]:
            raise ConfigError(
                f"LLM provider '{provider_name}' has an empty api_key"
            )


def get_variant(config: dict) -> VariantProfile:
    """Return the profile selected by ``pipeline.variant``."""
    name = config.get("pipeline", {}).get("variant", "professional")
    try:
        return VARIANTS[name]
    except KeyError:
        raise ConfigError(f"Unknown pipeline variant '{name}'") from None


def get_source_configs(config: dict) -> list[SourceConfig]:
    """Build source descriptors from the ``sources`` section.

    The entry key doubles as the fetcher kind unless ``kind`` is given, so
    two entries may share one fetcher with different settings.
    """
    descriptors = []
    for name, cfg in config.get("sources", {}).items():
        cfg = dict(cfg or {})
        kind = cfg.pop("kind", name)
        platform = cfg.pop("platform", kind)
        enabled = bool(cfg.pop("enabled", False))
        descriptors.append(
            SourceConfig(
                name=name,
                kind=kind,
                platform=platform,
                enabled=enabled,
                settings=cfg,
            )
        )
    return descriptors


def source_credentials(config: dict, name: str) -> dict:
    """Credential settings for source ``name`` as currently configured."""
    cfg = config.get("sources", {}).get(name) or {}
    return {k: v for k, v in cfg.items() if k in CREDENTIAL_KEYS}


def get_llm_task_config(config: dict, task: str) -> dict:
    """Get provider name and model for a given LLM task."""
    tasks = config.get("llm", {}).get("tasks", {})
    task_cfg = tasks.get(task) or {}
    provider_name = task_cfg.get("provider", "")
    model_override = task_cfg.get("model")

    providers = config.get("llm", {}).get("providers", {})
    provider_cfg = providers.get(provider_name, {})

    return {
        "provider_name": provider_name,
        "provider_type": provider_cfg.get("type", "openai_compatible"),
        "api_key": provider_cfg.get("api_key", ""),
        "base_url": provider_cfg.get("base_url", ""),
        "model": model_override or provider_cfg.get("default_model", ""),
        "max_retries": provider_cfg.get("max_retries", 3),
        "timeout": provider_cfg.get("timeout", 60),
    }


def has_llm_task(config: dict, task: str) -> bool:
    """True when ``task`` is routed to a configured provider."""
    llm = config.get("llm", {})
    if not llm.get("enabled", True):
        return False
    task_cfg = llm.get("tasks", {}).get(task)
    if not task_cfg:
        return False
    return task_cfg.get("provider", "") in llm.get("providers", {})


def get_request_delay(config: dict) -> float:
    """Courtesy pause between outbound calls, in seconds."""
    return float(config.get("pipeline", {}).get("request_delay", 1.5))


def get_db_path(config: dict) -> str:
    """Get database path from config."""
    return config.get("database", {}).get("path", "data/ideascout.db")
