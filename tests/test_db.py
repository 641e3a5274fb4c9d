"""Tests for database operations."""

from __future__ import annotations

from datetime import timedelta

import pytest

from ideascout.db import (
    count_daily_reports,
    count_items_with_title,
    finish_run,
    get_daily_report,
    get_item,
    get_recent_items,
    get_recent_runs,
    get_sources,
    get_top_scored_items,
    insert_item,
    insert_run,
    item_exists,
    mark_source_synced,
    patch_item,
    update_item_scores,
    upsert_daily_report,
    upsert_source,
)
from ideascout.models import (
    DailyReportSnapshot,
    PipelineRun,
    ScoreRecord,
    SourceConfig,
    utcnow,
)


def _scores(overall: float) -> ScoreRecord:
    return ScoreRecord(
        content_quality=0.5,
        business_viability=0.5,
        market_timing=0.5,
        technical_feasibility=0.5,
        competitive_advantage=0.5,
        overall=overall,
    )


def test_insert_and_get_item(db_conn, sample_items):
    item = sample_items[0]
    item_id = insert_item(db_conn, item)

    stored = get_item(db_conn, item_id)
    assert stored.title == item.title
    assert stored.source_platform == "twitter"
    assert stored.scores is None
    assert stored.version == 0


def test_item_exists(db_conn, sample_items):
    insert_item(db_conn, sample_items[0])
    assert item_exists(db_conn, title=sample_items[0].title)
    assert item_exists(db_conn, source_url=sample_items[0].source_url)
    assert not item_exists(db_conn, title=sample_items[1].title)


def test_item_exists_needs_a_key(db_conn):
    with pytest.raises(ValueError):
        item_exists(db_conn)


def test_get_recent_items_window(db_conn, make_item):
    insert_item(db_conn, make_item("Fresh startup idea", hours_ago=2))
    insert_item(db_conn, make_item("Stale startup idea", hours_ago=24 * 10))

    recent = get_recent_items(db_conn, utcnow() - timedelta(days=7))
    assert [i.title for i in recent] == ["Fresh startup idea"]


def test_get_recent_items_unscored_only(db_conn, make_item):
    scored_id = insert_item(db_conn, make_item("Scored idea"))
    insert_item(db_conn, make_item("Unscored idea"))
    update_item_scores(db_conn, scored_id, _scores(0.6))

    since = utcnow() - timedelta(days=1)
    titles = [i.title for i in get_recent_items(db_conn, since, unscored_only=True)]
    assert titles == ["Unscored idea"]


def test_update_item_scores_sets_quality_and_version(db_conn, sample_items):
    item_id = insert_item(db_conn, sample_items[0])
    update_item_scores(db_conn, item_id, _scores(0.82), high_value=True)

    stored = get_item(db_conn, item_id)
    assert stored.scores.overall == pytest.approx(0.82)
    assert stored.quality_score == pytest.approx(0.82)
    assert stored.high_value is True
    assert stored.version == 1


def test_top_scored_items_ordering(db_conn, make_item):
    for title, overall in [("Idea A", 0.4), ("Idea B", 0.9), ("Idea C", 0.7)]:
        update_item_scores(db_conn, insert_item(db_conn, make_item(title)), _scores(overall))
    insert_item(db_conn, make_item("Unscored idea"))

    top = get_top_scored_items(db_conn, limit=2)
    assert [i.title for i in top] == ["Idea B", "Idea C"]


def test_patch_item_bumps_version(db_conn, sample_items):
    item_id = insert_item(db_conn, sample_items[0])

    assert patch_item(db_conn, item_id, {"correlation_id": 7, "trend_momentum": 0.4})
    stored = get_item(db_conn, item_id)
    assert stored.correlation_id == 7
    assert stored.trend_momentum == pytest.approx(0.4)
    assert stored.version == 1


def test_patch_item_expected_version(db_conn, sample_items):
    """A stale version is rejected and leaves the row untouched."""
    item_id = insert_item(db_conn, sample_items[0])
    patch_item(db_conn, item_id, {"trend_momentum": 0.1})

    assert not patch_item(db_conn, item_id, {"trend_momentum": 0.9}, expected_version=0)
    assert get_item(db_conn, item_id).trend_momentum == pytest.approx(0.1)

    assert patch_item(db_conn, item_id, {"trend_momentum": 0.9}, expected_version=1)
    assert get_item(db_conn, item_id).version == 2


def test_patch_item_unknown_field(db_conn, sample_items):
    item_id = insert_item(db_conn, sample_items[0])
    with pytest.raises(ValueError, match="title"):
        patch_item(db_conn, item_id, {"title": "Renamed"})


def test_titles_are_not_unique(db_conn, sample_items):
    insert_item(db_conn, sample_items[0])
    insert_item(db_conn, sample_items[0])
    assert count_items_with_title(db_conn, sample_items[0].title) == 2


def test_upsert_daily_report_is_idempotent(db_conn):
    first = DailyReportSnapshot(report_date="2024-03-01", total_analyzed=3, summary="one")
    second = DailyReportSnapshot(report_date="2024-03-01", total_analyzed=5, summary="two")

    first_id = upsert_daily_report(db_conn, first)
    second_id = upsert_daily_report(db_conn, second)

    assert first_id == second_id
    assert count_daily_reports(db_conn, "2024-03-01") == 1
    stored = get_daily_report(db_conn, "2024-03-01")
    assert stored.total_analyzed == 5
    assert stored.summary == "two"


def test_upsert_source_keeps_last_sync(db_conn):
    source = SourceConfig(name="hn", kind="hackernews", platform="hacker_news")
    upsert_source(db_conn, source)
    mark_source_synced(db_conn, "hn", utcnow())

    source.enabled = False
    upsert_source(db_conn, source)

    assert get_sources(db_conn) == []
    stored = get_sources(db_conn, enabled_only=False)[0]
    assert stored.enabled is False
    assert stored.last_sync is not None


def test_upsert_source_drops_credentials(db_conn):
    source = SourceConfig(
        name="reddit", kind="reddit", platform="reddit",
        settings={"subreddits": ["startups"], "client_id": "id", "client_secret": "s3cr3t"},
    )
    upsert_source(db_conn, source)

    assert get_sources(db_conn)[0].settings == {"subreddits": ["startups"]}
    assert source.settings["client_secret"] == "s3cr3t"


def test_pipeline_run_lifecycle(db_conn):
    run = PipelineRun(job="intelligence", manual_trigger=True)
    run_id = insert_run(db_conn, run)

    run.status = "completed"
    run.collected = 12
    run.errors = ["Reddit: timeout"]
    run.finished_at = utcnow()
    finish_run(db_conn, run_id, run)

    runs = get_recent_runs(db_conn)
    assert len(runs) == 1
    assert runs[0]["status"] == "completed"
    assert runs[0]["collected"] == 12
    assert runs[0]["manual_trigger"] == 1
