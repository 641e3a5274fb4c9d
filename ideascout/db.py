"""SQLite database schema and query helpers."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path

from ideascout.models import (
    CREDENTIAL_KEYS,
    Alert,
    CorrelationRecord,
    DailyReportSnapshot,
    PipelineRun,
    RawItem,
    ScoreRecord,
    SourceConfig,
    TrendRow,
    VelocityRecord,
)

SCHEMA_VERSION = 1

# Titles are deliberately not UNIQUE: duplicate checks happen in the
# Deduplicator as a read-then-write, so overlapping collection runs can
# both insert the same title.
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS ideas (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    source_url TEXT NOT NULL DEFAULT '',
    source_platform TEXT NOT NULL,
    source_name TEXT NOT NULL DEFAULT '',
    discovered_at TEXT NOT NULL,
    category TEXT,
    industry TEXT,
    engagement TEXT NOT NULL DEFAULT '{}',
    content_quality_score REAL,
    business_viability_score REAL,
    market_timing_score REAL,
    technical_feasibility_score REAL,
    competitive_advantage_score REAL,
    overall_relevance_score REAL,
    confidence_score REAL,
    scored_at TEXT,
    quality_score REAL,
    high_value INTEGER NOT NULL DEFAULT 0,
    correlation_id INTEGER,
    cross_validation_score REAL,
    trend_momentum REAL,
    market_opportunity_score REAL,
    business_confidence_score REAL,
    cross_platform_mentions INTEGER NOT NULL DEFAULT 0,
    version INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS trend_correlations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    topic TEXT NOT NULL,
    platforms TEXT NOT NULL DEFAULT '[]',
    correlation_score REAL NOT NULL,
    mention_volume INTEGER NOT NULL,
    velocity_score REAL NOT NULL,
    market_opportunity_score REAL NOT NULL,
    business_confidence_score REAL NOT NULL DEFAULT 0.0,
    average_quality REAL NOT NULL DEFAULT 0.0,
    confidence_level TEXT NOT NULL DEFAULT 'medium',
    summary TEXT NOT NULL DEFAULT '',
    keywords TEXT NOT NULL DEFAULT '[]',
    item_ids TEXT NOT NULL DEFAULT '[]',
    variant TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS trend_velocity (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    correlation_id INTEGER NOT NULL,
    topic TEXT NOT NULL,
    current_velocity REAL NOT NULL,
    acceleration_rate REAL NOT NULL,
    momentum_score REAL NOT NULL,
    quality_velocity_score REAL NOT NULL,
    velocity_confidence REAL NOT NULL,
    related_count INTEGER NOT NULL DEFAULT 0,
    analyzed_at TEXT NOT NULL,
    FOREIGN KEY (correlation_id) REFERENCES trend_correlations(id)
);

CREATE TABLE IF NOT EXISTS daily_reports (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    report_date TEXT UNIQUE NOT NULL,
    total_analyzed INTEGER NOT NULL DEFAULT 0,
    top_items TEXT NOT NULL DEFAULT '[]',
    special_mentions TEXT NOT NULL DEFAULT '[]',
    summary TEXT NOT NULL DEFAULT '',
    generated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS historical_trends (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    trend_date TEXT NOT NULL,
    dimension TEXT NOT NULL,
    name TEXT NOT NULL,
    avg_score REAL NOT NULL,
    item_count INTEGER NOT NULL,
    trending_keywords TEXT NOT NULL DEFAULT '[]'
);

CREATE TABLE IF NOT EXISTS notifications (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    alert_type TEXT NOT NULL,
    title TEXT NOT NULL,
    message TEXT NOT NULL,
    severity TEXT NOT NULL DEFAULT 'high',
    related_item_id INTEGER,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS data_sources (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL,
    kind TEXT NOT NULL,
    platform TEXT NOT NULL,
    enabled INTEGER NOT NULL DEFAULT 1,
    settings TEXT NOT NULL DEFAULT '{}',
    last_sync TEXT
);

CREATE TABLE IF NOT EXISTS pipeline_runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    job TEXT NOT NULL,
    manual_trigger INTEGER NOT NULL DEFAULT 0,
    started_at TEXT NOT NULL,
    finished_at TEXT,
    status TEXT NOT NULL DEFAULT 'running',
    collected INTEGER NOT NULL DEFAULT 0,
    processed INTEGER NOT NULL DEFAULT 0,
    correlations_found INTEGER NOT NULL DEFAULT 0,
    cross_platform_validated INTEGER NOT NULL DEFAULT 0,
    velocity_analyzed INTEGER NOT NULL DEFAULT 0,
    filtered_high_value INTEGER NOT NULL DEFAULT 0,
    errors TEXT NOT NULL DEFAULT '[]',
    llm_tokens_used INTEGER NOT NULL DEFAULT 0,
    llm_cost_usd REAL NOT NULL DEFAULT 0.0
);

CREATE INDEX IF NOT EXISTS idx_ideas_title ON ideas(title);
CREATE INDEX IF NOT EXISTS idx_ideas_source_url ON ideas(source_url);
CREATE INDEX IF NOT EXISTS idx_ideas_discovered_at ON ideas(discovered_at);
CREATE INDEX IF NOT EXISTS idx_ideas_overall ON ideas(overall_relevance_score);
CREATE INDEX IF NOT EXISTS idx_correlations_created_at ON trend_correlations(created_at);
CREATE INDEX IF NOT EXISTS idx_trends_date ON historical_trends(trend_date);
"""

# Columns the aggregator and scorer may overwrite through patch_item
PATCHABLE_ITEM_FIELDS = {
    "category",
    "industry",
    "quality_score",
    "high_value",
    "correlation_id",
    "cross_validation_score",
    "trend_momentum",
    "market_opportunity_score",
    "business_confidence_score",
    "cross_platform_mentions",
}


def get_connection(db_path: str) -> sqlite3.Connection:
    """Get a SQLite connection with WAL mode enabled."""
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str) -> None:
    """Create all tables and set schema version."""
    conn = get_connection(db_path)
    try:
        conn.executescript(SCHEMA_SQL)
        conn.execute(
            "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,),
        )
        conn.commit()
    finally:
        conn.close()


def _dt_str(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.isoformat()


def _parse_dt(s: str | None) -> datetime | None:
    if s is None:
        return None
    return datetime.fromisoformat(s)


# --- Idea helpers ---


def insert_item(conn: sqlite3.Connection, item: RawItem) -> int:
    """Insert a collected item, returning its ID. No duplicate check."""
    cur = conn.execute(
        """INSERT INTO ideas
           (title, description, source_url, source_platform, source_name,
            discovered_at, category, industry, engagement)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            item.title,
            item.description or "",
            item.source_url or "",
            item.source_platform,
            item.source_name,
            _dt_str(item.discovered_at),
            item.category,
            item.industry,
            json.dumps(item.engagement),
        ),
    )
    conn.commit()
    return cur.lastrowid


def item_exists(
    conn: sqlite3.Connection,
    title: str | None = None,
    source_url: str | None = None,
) -> bool:
    """Exact-match existence check by title or source URL."""
    if title is not None:
        row = conn.execute(
            "SELECT 1 FROM ideas WHERE title = ? LIMIT 1", (title,)
        ).fetchone()
    elif source_url is not None:
        row = conn.execute(
            "SELECT 1 FROM ideas WHERE source_url = ? LIMIT 1", (source_url,)
        ).fetchone()
    else:
        raise ValueError("item_exists needs a title or a source_url")
    return row is not None


def count_items_with_title(conn: sqlite3.Connection, title: str) -> int:
    row = conn.execute(
        "SELECT COUNT(*) AS n FROM ideas WHERE title = ?", (title,)
    ).fetchone()
    return row["n"]


def get_item(conn: sqlite3.Connection, item_id: int) -> RawItem | None:
    row = conn.execute("SELECT * FROM ideas WHERE id = ?", (item_id,)).fetchone()
    return _row_to_item(row) if row else None


def get_recent_items(
    conn: sqlite3.Connection,
    since: datetime,
    limit: int = 100,
    min_quality: float | None = None,
    unscored_only: bool = False,
) -> list[RawItem]:
    """Items discovered after ``since``, newest first."""
    sql = "SELECT * FROM ideas WHERE discovered_at >= ?"
    params: list = [_dt_str(since)]
    if unscored_only:
        sql += " AND overall_relevance_score IS NULL"
    if min_quality is not None:
        sql += " AND quality_score >= ?"
        params.append(min_quality)
    sql += " ORDER BY discovered_at DESC, id DESC LIMIT ?"
    params.append(limit)
    rows = conn.execute(sql, params).fetchall()
    return [_row_to_item(row) for row in rows]


def get_top_scored_items(conn: sqlite3.Connection, limit: int = 15) -> list[RawItem]:
    """Scored items ordered by overall relevance, best first."""
    rows = conn.execute(
        """SELECT * FROM ideas WHERE overall_relevance_score IS NOT NULL
           ORDER BY overall_relevance_score DESC, id ASC LIMIT ?""",
        (limit,),
    ).fetchall()
    return [_row_to_item(row) for row in rows]


def get_scored_items(conn: sqlite3.Connection) -> list[RawItem]:
    rows = conn.execute(
        "SELECT * FROM ideas WHERE overall_relevance_score IS NOT NULL"
    ).fetchall()
    return [_row_to_item(row) for row in rows]


def count_scored_items(conn: sqlite3.Connection) -> int:
    row = conn.execute(
        "SELECT COUNT(*) AS n FROM ideas WHERE overall_relevance_score IS NOT NULL"
    ).fetchone()
    return row["n"]


def update_item_scores(
    conn: sqlite3.Connection,
    item_id: int,
    scores: ScoreRecord,
    high_value: bool = False,
) -> None:
    """Write a full score record in one statement."""
    conn.execute(
        """UPDATE ideas SET
           content_quality_score = ?, business_viability_score = ?,
           market_timing_score = ?, technical_feasibility_score = ?,
           competitive_advantage_score = ?, overall_relevance_score = ?,
           confidence_score = ?, scored_at = ?, quality_score = ?,
           high_value = ?, version = version + 1
           WHERE id = ?""",
        (
            scores.content_quality,
            scores.business_viability,
            scores.market_timing,
            scores.technical_feasibility,
            scores.competitive_advantage,
            scores.overall,
            scores.confidence,
            _dt_str(scores.scored_at),
            scores.overall,
            int(high_value),
            item_id,
        ),
    )
    conn.commit()


def patch_item(
    conn: sqlite3.Connection,
    item_id: int,
    fields: dict,
    expected_version: int | None = None,
) -> bool:
    """Overwrite selected columns on an item and bump its version.

    With ``expected_version`` the update only applies if nobody else has
    written the row since it was read. Returns whether a row changed.
    """
    unknown = set(fields) - PATCHABLE_ITEM_FIELDS
    if unknown:
        raise ValueError(f"Cannot patch item fields: {sorted(unknown)}")
    if not fields:
        return False

    assignments = ", ".join(f"{name} = ?" for name in fields)
    sql = f"UPDATE ideas SET {assignments}, version = version + 1 WHERE id = ?"
    params = [*fields.values(), item_id]
    if expected_version is not None:
        sql += " AND version = ?"
        params.append(expected_version)

    cur = conn.execute(sql, params)
    conn.commit()
    return cur.rowcount > 0


def _row_to_item(row: sqlite3.Row) -> RawItem:
    scores = None
    if row["overall_relevance_score"] is not None:
        scores = ScoreRecord(
            content_quality=row["content_quality_score"],
            business_viability=row["business_viability_score"],
            market_timing=row["market_timing_score"],
            technical_feasibility=row["technical_feasibility_score"],
            competitive_advantage=row["competitive_advantage_score"],
            overall=row["overall_relevance_score"],
            confidence=row["confidence_score"] or 0.5,
            scored_at=_parse_dt(row["scored_at"]),
        )
    return RawItem(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        source_url=row["source_url"],
        source_platform=row["source_platform"],
        source_name=row["source_name"],
        discovered_at=_parse_dt(row["discovered_at"]),
        category=row["category"],
        industry=row["industry"],
        engagement=json.loads(row["engagement"] or "{}"),
        scores=scores,
        quality_score=row["quality_score"],
        high_value=bool(row["high_value"]),
        correlation_id=row["correlation_id"],
        cross_validation_score=row["cross_validation_score"],
        trend_momentum=row["trend_momentum"],
        market_opportunity_score=row["market_opportunity_score"],
        business_confidence_score=row["business_confidence_score"],
        cross_platform_mentions=row["cross_platform_mentions"],
        version=row["version"],
    )


# --- Correlation helpers ---


def insert_correlation(conn: sqlite3.Connection, record: CorrelationRecord) -> int:
    cur = conn.execute(
        """INSERT INTO trend_correlations
           (topic, platforms, correlation_score, mention_volume, velocity_score,
            market_opportunity_score, business_confidence_score, average_quality,
            confidence_level, summary, keywords, item_ids, variant, created_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            record.topic,
            json.dumps(record.platforms),
            record.correlation_score,
            record.mention_volume,
            record.velocity_score,
            record.market_opportunity_score,
            record.business_confidence_score,
            record.average_quality,
            record.confidence_level,
            record.summary,
            json.dumps(record.keywords),
            json.dumps(record.item_ids),
            record.variant,
            _dt_str(record.created_at),
        ),
    )
    conn.commit()
    return cur.lastrowid


def get_recent_correlations(
    conn: sqlite3.Connection, since: datetime, limit: int = 50,
) -> list[CorrelationRecord]:
    rows = conn.execute(
        """SELECT * FROM trend_correlations WHERE created_at >= ?
           ORDER BY created_at DESC, id DESC LIMIT ?""",
        (_dt_str(since), limit),
    ).fetchall()
    return [
        CorrelationRecord(
            id=row["id"],
            topic=row["topic"],
            platforms=json.loads(row["platforms"]),
            correlation_score=row["correlation_score"],
            mention_volume=row["mention_volume"],
            velocity_score=row["velocity_score"],
            market_opportunity_score=row["market_opportunity_score"],
            business_confidence_score=row["business_confidence_score"],
            average_quality=row["average_quality"],
            confidence_level=row["confidence_level"],
            summary=row["summary"],
            keywords=json.loads(row["keywords"]),
            item_ids=json.loads(row["item_ids"]),
            variant=row["variant"],
            created_at=_parse_dt(row["created_at"]),
        )
        for row in rows
    ]


def insert_velocity(conn: sqlite3.Connection, record: VelocityRecord) -> int:
    cur = conn.execute(
        """INSERT INTO trend_velocity
           (correlation_id, topic, current_velocity, acceleration_rate,
            momentum_score, quality_velocity_score, velocity_confidence,
            related_count, analyzed_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            record.correlation_id,
            record.topic,
            record.current_velocity,
            record.acceleration_rate,
            record.momentum_score,
            record.quality_velocity_score,
            record.velocity_confidence,
            record.related_count,
            _dt_str(record.analyzed_at),
        ),
    )
    conn.commit()
    return cur.lastrowid


def get_velocity_for_correlation(
    conn: sqlite3.Connection, correlation_id: int,
) -> list[dict]:
    rows = conn.execute(
        "SELECT * FROM trend_velocity WHERE correlation_id = ? ORDER BY id",
        (correlation_id,),
    ).fetchall()
    return [dict(row) for row in rows]


def analyzed_correlation_ids(conn: sqlite3.Connection, correlation_ids: list[int]) -> set[int]:
    """Subset of ``correlation_ids`` that already have a velocity row."""
    if not correlation_ids:
        return set()
    placeholders = ", ".join("?" for _ in correlation_ids)
    rows = conn.execute(
        f"SELECT DISTINCT correlation_id FROM trend_velocity "
        f"WHERE correlation_id IN ({placeholders})",
        correlation_ids,
    ).fetchall()
    return {row["correlation_id"] for row in rows}


# --- Report helpers ---


def upsert_daily_report(conn: sqlite3.Connection, report: DailyReportSnapshot) -> int:
    """Insert or overwrite the report for ``report.report_date``."""
    conn.execute(
        """INSERT INTO daily_reports
           (report_date, total_analyzed, top_items, special_mentions,
            summary, generated_at)
           VALUES (?, ?, ?, ?, ?, ?)
           ON CONFLICT(report_date) DO UPDATE SET
             total_analyzed = excluded.total_analyzed,
             top_items = excluded.top_items,
             special_mentions = excluded.special_mentions,
             summary = excluded.summary,
             generated_at = excluded.generated_at""",
        (
            report.report_date,
            report.total_analyzed,
            json.dumps(report.top_items),
            json.dumps(report.special_mentions),
            report.summary,
            _dt_str(report.generated_at),
        ),
    )
    conn.commit()
    row = conn.execute(
        "SELECT id FROM daily_reports WHERE report_date = ?", (report.report_date,)
    ).fetchone()
    return row["id"]


def get_daily_report(
    conn: sqlite3.Connection, report_date: str,
) -> DailyReportSnapshot | None:
    row = conn.execute(
        "SELECT * FROM daily_reports WHERE report_date = ?", (report_date,)
    ).fetchone()
    if row is None:
        return None
    return DailyReportSnapshot(
        id=row["id"],
        report_date=row["report_date"],
        total_analyzed=row["total_analyzed"],
        top_items=json.loads(row["top_items"]),
        special_mentions=json.loads(row["special_mentions"]),
        summary=row["summary"],
        generated_at=_parse_dt(row["generated_at"]),
    )


def count_daily_reports(conn: sqlite3.Connection, report_date: str) -> int:
    row = conn.execute(
        "SELECT COUNT(*) AS n FROM daily_reports WHERE report_date = ?",
        (report_date,),
    ).fetchone()
    return row["n"]


def replace_trend_rows(
    conn: sqlite3.Connection, trend_date: str, rows: list[TrendRow],
) -> None:
    """Replace all historical trend rows for one date."""
    conn.execute("DELETE FROM historical_trends WHERE trend_date = ?", (trend_date,))
    conn.executemany(
        """INSERT INTO historical_trends
           (trend_date, dimension, name, avg_score, item_count, trending_keywords)
           VALUES (?, ?, ?, ?, ?, ?)""",
        [
            (
                trend_date,
                row.dimension,
                row.name,
                row.avg_score,
                row.item_count,
                json.dumps(row.trending_keywords),
            )
            for row in rows
        ],
    )
    conn.commit()


def get_trend_rows(conn: sqlite3.Connection, trend_date: str) -> list[TrendRow]:
    rows = conn.execute(
        "SELECT * FROM historical_trends WHERE trend_date = ? ORDER BY id",
        (trend_date,),
    ).fetchall()
    return [
        TrendRow(
            id=row["id"],
            trend_date=row["trend_date"],
            dimension=row["dimension"],
            name=row["name"],
            avg_score=row["avg_score"],
            item_count=row["item_count"],
            trending_keywords=json.loads(row["trending_keywords"]),
        )
        for row in rows
    ]


def insert_alert(conn: sqlite3.Connection, alert: Alert) -> int:
    cur = conn.execute(
        """INSERT INTO notifications
           (alert_type, title, message, severity, related_item_id, created_at)
           VALUES (?, ?, ?, ?, ?, ?)""",
        (
            alert.alert_type,
            alert.title,
            alert.message,
            alert.severity,
            alert.related_item_id,
            _dt_str(alert.created_at),
        ),
    )
    conn.commit()
    return cur.lastrowid


def get_alerts(conn: sqlite3.Connection, limit: int = 50) -> list[Alert]:
    rows = conn.execute(
        "SELECT * FROM notifications ORDER BY id DESC LIMIT ?", (limit,)
    ).fetchall()
    return [
        Alert(
            id=row["id"],
            alert_type=row["alert_type"],
            title=row["title"],
            message=row["message"],
            severity=row["severity"],
            related_item_id=row["related_item_id"],
            created_at=_parse_dt(row["created_at"]),
        )
        for row in rows
    ]


# --- Data source helpers ---


def upsert_source(conn: sqlite3.Connection, source: SourceConfig) -> int:
    """Insert or update a source descriptor by name. Keeps last_sync.

    Credential settings are dropped; they stay in the loaded config only.
    """
    settings = {
        k: v for k, v in source.settings.items() if k not in CREDENTIAL_KEYS
    }
    conn.execute(
        """INSERT INTO data_sources (name, kind, platform, enabled, settings)
           VALUES (?, ?, ?, ?, ?)
           ON CONFLICT(name) DO UPDATE SET
             kind = excluded.kind,
             platform = excluded.platform,
             enabled = excluded.enabled,
             settings = excluded.settings""",
        (
            source.name,
            source.kind,
            source.platform,
            int(source.enabled),
            json.dumps(settings),
        ),
    )
    conn.commit()
    row = conn.execute(
        "SELECT id FROM data_sources WHERE name = ?", (source.name,)
    ).fetchone()
    return row["id"]


def get_sources(conn: sqlite3.Connection, enabled_only: bool = True) -> list[SourceConfig]:
    sql = "SELECT * FROM data_sources"
    if enabled_only:
        sql += " WHERE enabled = 1"
    rows = conn.execute(sql + " ORDER BY id").fetchall()
    return [
        SourceConfig(
            id=row["id"],
            name=row["name"],
            kind=row["kind"],
            platform=row["platform"],
            enabled=bool(row["enabled"]),
            settings=json.loads(row["settings"]),
            last_sync=_parse_dt(row["last_sync"]),
        )
        for row in rows
    ]


def mark_source_synced(
    conn: sqlite3.Connection, name: str, when: datetime,
) -> None:
    conn.execute(
        "UPDATE data_sources SET last_sync = ? WHERE name = ?",
        (_dt_str(when), name),
    )
    conn.commit()


# --- PipelineRun helpers ---


def insert_run(conn: sqlite3.Connection, run: PipelineRun) -> int:
    cur = conn.execute(
        "INSERT INTO pipeline_runs (job, manual_trigger, started_at, status) VALUES (?, ?, ?, ?)",
        (run.job, int(run.manual_trigger), _dt_str(run.started_at), run.status),
    )
    conn.commit()
    return cur.lastrowid


def finish_run(conn: sqlite3.Connection, run_id: int, run: PipelineRun) -> None:
    conn.execute(
        """UPDATE pipeline_runs SET
           finished_at = ?, status = ?, collected = ?, processed = ?,
           correlations_found = ?, cross_platform_validated = ?,
           velocity_analyzed = ?, filtered_high_value = ?, errors = ?,
           llm_tokens_used = ?, llm_cost_usd = ?
           WHERE id = ?""",
        (
            _dt_str(run.finished_at),
            run.status,
            run.collected,
            run.processed,
            run.correlations_found,
            run.cross_platform_validated,
            run.velocity_analyzed,
            run.filtered_high_value,
            json.dumps(run.errors),
            run.llm_tokens_used,
            run.llm_cost_usd,
            run_id,
        ),
    )
    conn.commit()


def get_recent_runs(conn: sqlite3.Connection, limit: int = 10) -> list[dict]:
    """Fetch recent pipeline runs for stats display."""
    rows = conn.execute(
        "SELECT * FROM pipeline_runs ORDER BY started_at DESC LIMIT ?", (limit,)
    ).fetchall()
    return [dict(row) for row in rows]
