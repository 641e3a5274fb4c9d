"""Pipeline orchestrator: collection, intelligence engine and daily report jobs.

Each job is an independent invocation that re-reads what it needs from
storage. Steps run sequentially; a failing step is logged, recorded in the
run's ``errors`` and the job moves on. Configuration errors abort the job.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3

from ideascout.analyze.correlation import CorrelationAggregator
from ideascout.analyze.velocity import VelocityAnalyzer
from ideascout.config import (
    LLM_TASKS,
    VariantProfile,
    get_db_path,
    get_request_delay,
    get_source_configs,
    get_variant,
    has_llm_task,
    source_credentials,
    validate_config,
)
from ideascout.db import (
    finish_run,
    get_connection,
    get_sources,
    insert_run,
    mark_source_synced,
    upsert_source,
)
from ideascout.errors import ConfigError
from ideascout.ingest import SOURCES
from ideascout.llm.cost import tracking
from ideascout.models import PipelineRun, RawItem, utcnow
from ideascout.process.cluster import TopicClusterer
from ideascout.process.dedup import Deduplicator
from ideascout.process.scorer import RelevanceScorer
from ideascout.synthesize.report import ReportGenerator

logger = logging.getLogger(__name__)


def sync_sources(config: dict, conn: sqlite3.Connection) -> int:
    """Copy the ``sources`` config section into the data_sources table."""
    descriptors = get_source_configs(config)
    for descriptor in descriptors:
        if descriptor.kind not in SOURCES:
            raise ConfigError(
                f"Source '{descriptor.name}' has unknown kind '{descriptor.kind}'"
            )
        upsert_source(conn, descriptor)
    logger.info("Synced %d source descriptors", len(descriptors))
    return len(descriptors)


async def collect_items(
    config: dict, conn: sqlite3.Connection,
) -> tuple[list[RawItem], int, list[str]]:
    """Fetch from every enabled stored source.

    Returns (items, sources_run, errors). Missing credentials raise
    ConfigError; any other source failure is recorded and skipped.
    """
    descriptors = get_sources(conn)
    if not descriptors:
        sync_sources(config, conn)
        descriptors = get_sources(conn)

    delay = get_request_delay(config)
    items: list[RawItem] = []
    errors: list[str] = []
    sources_run = 0

    for i, descriptor in enumerate(descriptors):
        if descriptor.kind not in SOURCES:
            logger.warning("Source '%s' has unregistered kind '%s'",
                           descriptor.name, descriptor.kind)
            errors.append(f"{descriptor.name}: unknown source kind '{descriptor.kind}'")
            continue
        if i and delay:
            await asyncio.sleep(delay)

        # Credentials are never stored; take the ones configured right now
        descriptor.settings = {
            **descriptor.settings, **source_credentials(config, descriptor.name),
        }
        source = SOURCES[descriptor.kind](config, descriptor)
        try:
            fetched = await source.fetch()
        except ConfigError:
            raise
        except Exception as exc:
            logger.exception("Source '%s' failed", descriptor.name)
            errors.append(f"{descriptor.name}: {exc}")
            continue

        errors.extend(source.errors)
        items.extend(fetched)
        sources_run += 1
        mark_source_synced(conn, descriptor.name, utcnow())

    logger.info("Collected %d items from %d sources", len(items), sources_run)
    return items, sources_run, errors


# --- Steps (each records its own failures on the run) ---


async def _step_collect(config: dict, conn: sqlite3.Connection, run: PipelineRun) -> dict:
    try:
        items, sources_run, errors = await collect_items(config, conn)
    except ConfigError:
        raise
    except Exception as exc:
        logger.exception("Collection step failed")
        run.errors.append(f"Source Collector: {exc}")
        return {"collected": 0, "skipped_duplicates": 0, "sources": 0}

    run.errors.extend(errors)
    dedup = Deduplicator(config, conn)
    stored, skipped = dedup.store_new(items)
    run.errors.extend(dedup.errors)
    run.collected += len(stored)
    return {"collected": len(stored), "skipped_duplicates": skipped, "sources": sources_run}


async def _step_score(
    config: dict, conn: sqlite3.Connection, run: PipelineRun, variant: VariantProfile,
) -> None:
    scorer = RelevanceScorer(config, variant)
    try:
        processed, high_value = await scorer.score_recent(conn)
    except Exception as exc:
        logger.exception("Scoring step failed")
        run.errors.append(f"Relevance Scorer: {exc}")
        return
    run.errors.extend(scorer.errors)
    run.processed += processed
    run.filtered_high_value += high_value


async def _step_correlate(
    config: dict, conn: sqlite3.Connection, run: PipelineRun, variant: VariantProfile,
) -> None:
    try:
        clusterer = TopicClusterer(config, variant)
        window = clusterer.load_window(conn)
        clusters = await clusterer.cluster(window)
    except ConfigError:
        raise
    except Exception as exc:
        logger.exception("Clustering step failed")
        run.errors.append(f"Topic Clusterer: {exc}")
        return

    aggregator = CorrelationAggregator(config, conn, variant)
    for cluster in clusters:
        try:
            record = await aggregator.aggregate(cluster)
        except Exception as exc:
            logger.exception("Aggregating cluster '%s' failed", cluster.topic)
            run.errors.append(f"Correlation Aggregator: {cluster.topic}: {exc}")
            continue
        run.correlations_found += 1
        if len(record.platforms) >= 2:
            run.cross_platform_validated += 1
    run.errors.extend(aggregator.errors)


def _step_velocity(config: dict, conn: sqlite3.Connection, run: PipelineRun) -> None:
    analyzer = VelocityAnalyzer(config, conn)
    try:
        results = analyzer.analyze_recent()
    except Exception as exc:
        logger.exception("Velocity step failed")
        run.errors.append(f"Velocity Analyzer: {exc}")
        return
    run.errors.extend(analyzer.errors)
    run.velocity_analyzed += len(results)


# --- Jobs ---


async def _tracked(config: dict, run: PipelineRun, body) -> dict:
    """Run ``body(conn, run)`` inside a recorded pipeline_runs row."""
    validate_config(config)
    conn = get_connection(get_db_path(config))
    run_id = insert_run(conn, run)
    logger.info("Run #%d (%s) started", run_id, run.job)

    with tracking() as tracker:
        try:
            extra = await body(conn, run) or {}
            run.status = "completed"
            return extra
        except Exception:
            logger.exception("Run #%d (%s) failed", run_id, run.job)
            run.status = "failed"
            raise
        finally:
            run.finished_at = utcnow()
            run.llm_tokens_used = tracker.total_tokens
            run.llm_cost_usd = tracker.total_cost_usd
            finish_run(conn, run_id, run)
            conn.close()
            _log_finished(run_id, run)


def _log_finished(run_id: int, run: PipelineRun) -> None:
    logger.info(
        "Run #%d (%s) %s: collected=%d processed=%d correlations=%d "
        "errors=%d tokens=%d $%.4f",
        run_id, run.job, run.status, run.collected, run.processed,
        run.correlations_found, len(run.errors),
        run.llm_tokens_used, run.llm_cost_usd,
    )


async def run_collection(config: dict) -> dict:
    """Collect, dedup and store new items."""
    run = PipelineRun(job="collect")

    async def body(conn, run):
        return await _step_collect(config, conn, run)

    counters = await _tracked(config, run, body)
    return {**counters, "errors": list(run.errors)}


async def run_scoring(config: dict) -> dict:
    run = PipelineRun(job="score")
    variant = get_variant(config)

    async def body(conn, run):
        await _step_score(config, conn, run, variant)

    await _tracked(config, run, body)
    return run.results(ai_enabled=has_llm_task(config, "score"))


async def run_correlation(config: dict) -> dict:
    """Cluster the look-back window, aggregate, then analyze velocity."""
    run = PipelineRun(job="correlate")
    variant = get_variant(config)

    async def body(conn, run):
        await _step_correlate(config, conn, run, variant)
        _step_velocity(config, conn, run)

    await _tracked(config, run, body)
    return run.results(ai_enabled=_ai_enabled(config))


async def run_intelligence_engine(config: dict, manual_trigger: bool = False) -> dict:
    """Collection, scoring, clustering/aggregation and velocity in one run."""
    run = PipelineRun(job="intelligence", manual_trigger=manual_trigger)
    variant = get_variant(config)

    async def body(conn, run):
        await _step_collect(config, conn, run)
        await _step_score(config, conn, run, variant)
        await _step_correlate(config, conn, run, variant)
        _step_velocity(config, conn, run)

    await _tracked(config, run, body)
    return run.results(ai_enabled=_ai_enabled(config))


async def run_daily_report(config: dict, report_date: str | None = None) -> dict:
    run = PipelineRun(job="report")

    async def body(conn, run):
        generator = ReportGenerator(config, conn)
        snapshot = generator.generate(report_date)
        run.errors.extend(generator.errors)
        run.processed = snapshot.total_analyzed
        return {
            "report_date": snapshot.report_date,
            "top_ideas_count": len(snapshot.top_items),
            "special_mentions_count": len(snapshot.special_mentions),
            "total_analyzed": snapshot.total_analyzed,
        }

    return await _tracked(config, run, body)


def _ai_enabled(config: dict) -> bool:
    return any(has_llm_task(config, task) for task in LLM_TASKS)
