"""Core data models for the idea discovery pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class ScoreRecord:
    """Relevance sub-scores for one item, all in [0, 1]."""

    content_quality: float
    business_viability: float
    market_timing: float
    technical_feasibility: float
    competitive_advantage: float
    overall: float
    confidence: float = 0.5  # 0.9 when the delegated scorer answered
    scored_at: datetime = field(default_factory=utcnow)


@dataclass
class RawItem:
    """A single candidate startup-idea mention from one source."""

    title: str
    description: str
    source_url: str
    source_platform: str  # hacker_news, reddit, github, twitter, web
    discovered_at: datetime = field(default_factory=utcnow)
    category: str | None = None
    industry: str | None = None
    source_name: str = ""
    engagement: dict = field(default_factory=dict)
    scores: ScoreRecord | None = None
    quality_score: float | None = None
    high_value: bool = False
    # Back-references written by the correlation aggregator
    correlation_id: int | None = None
    cross_validation_score: float | None = None
    trend_momentum: float | None = None
    market_opportunity_score: float | None = None
    business_confidence_score: float | None = None
    cross_platform_mentions: int = 0
    version: int = 0
    id: int | None = None

    @property
    def text(self) -> str:
        """Title and description joined, as matched by keyword heuristics."""
        return f"{self.title} {self.description or ''}".strip()


@dataclass
class Cluster:
    """Items judged similar enough to form one cross-platform trend."""

    topic: str
    items: list[RawItem] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)

    @property
    def platforms(self) -> list[str]:
        return sorted({item.source_platform for item in self.items})

    @property
    def average_quality(self) -> float:
        if not self.items:
            return 0.0
        total = sum(
            item.quality_score if item.quality_score is not None else 0.5
            for item in self.items
        )
        return total / len(self.items)


@dataclass
class CorrelationRecord:
    """Persisted summary of one cluster. Insert-only."""

    topic: str
    platforms: list[str]
    correlation_score: float
    mention_volume: int
    velocity_score: float
    market_opportunity_score: float
    summary: str
    item_ids: list[int] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    average_quality: float = 0.0
    business_confidence_score: float = 0.0
    confidence_level: str = "medium"  # high, medium
    variant: str = "professional"
    created_at: datetime = field(default_factory=utcnow)
    id: int | None = None


@dataclass
class VelocityRecord:
    """Momentum analysis for one correlation."""

    correlation_id: int
    topic: str
    current_velocity: float
    acceleration_rate: float
    momentum_score: float
    quality_velocity_score: float
    velocity_confidence: float
    related_count: int
    analyzed_at: datetime = field(default_factory=utcnow)
    id: int | None = None


@dataclass
class DailyReportSnapshot:
    """One report per calendar date."""

    report_date: str  # YYYY-MM-DD
    total_analyzed: int
    top_items: list[dict] = field(default_factory=list)
    special_mentions: list[dict] = field(default_factory=list)
    summary: str = ""
    generated_at: datetime = field(default_factory=utcnow)
    id: int | None = None


@dataclass
class TrendRow:
    """Per-category or per-industry rollup for one report date."""

    trend_date: str
    dimension: str  # category, industry
    name: str
    avg_score: float
    item_count: int
    trending_keywords: list[dict] = field(default_factory=list)
    id: int | None = None


@dataclass
class Alert:
    """Notification raised for an exceptionally scored item."""

    alert_type: str
    title: str
    message: str
    severity: str = "high"
    related_item_id: int | None = None
    created_at: datetime = field(default_factory=utcnow)
    id: int | None = None


CREDENTIAL_KEYS = frozenset({"api_key", "token", "client_id", "client_secret"})


@dataclass
class SourceConfig:
    """Persisted descriptor of one collection source.

    Settings named in ``CREDENTIAL_KEYS`` are never written to storage;
    they are merged back in from the loaded config when a source runs.
    """

    name: str
    kind: str  # registered fetcher type
    platform: str
    enabled: bool = True
    settings: dict = field(default_factory=dict)
    last_sync: datetime | None = None
    id: int | None = None


@dataclass
class PipelineRun:
    """Record of a single engine invocation and its counters."""

    job: str = "intelligence"  # intelligence, collect, report
    manual_trigger: bool = False
    started_at: datetime = field(default_factory=utcnow)
    finished_at: datetime | None = None
    status: str = "running"  # running, completed, failed
    collected: int = 0
    processed: int = 0
    correlations_found: int = 0
    cross_platform_validated: int = 0
    velocity_analyzed: int = 0
    filtered_high_value: int = 0
    errors: list[str] = field(default_factory=list)
    llm_tokens_used: int = 0
    llm_cost_usd: float = 0.0
    id: int | None = None

    def results(self, ai_enabled: bool = False) -> dict:
        """Counters in the shape returned to callers."""
        return {
            "collected": self.collected,
            "processed": self.processed,
            "correlations_found": self.correlations_found,
            "cross_platform_validated": self.cross_platform_validated,
            "velocity_analyzed": self.velocity_analyzed,
            "filtered_high_value": self.filtered_high_value,
            "ai_analysis_enabled": ai_enabled,
            "manual_trigger": self.manual_trigger,
            "errors": list(self.errors),
        }
