"""CLI entrypoint: python -m ideascout {run|collect|score|correlate|report|...}."""

from __future__ import annotations

import asyncio
import json
import logging
import logging.handlers
import os
import sys
from datetime import date
from pathlib import Path

from ideascout.config import get_db_path, load_config, validate_config
from ideascout.db import get_connection, get_recent_runs, get_sources, init_db
from ideascout.errors import ConfigError


def setup_logging(config: dict) -> None:
    """Configure logging with console + rotating file output."""
    root = logging.getLogger()
    root.setLevel(config.get("logging", {}).get("level", "INFO"))

    fmt = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    root.addHandler(console)

    # File handler next to the database (rotate at 5MB, keep 3 backups)
    log_dir = Path(get_db_path(config)).parent
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.RotatingFileHandler(
        str(log_dir / "ideascout.log"), maxBytes=5 * 1024 * 1024, backupCount=3,
    )
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)


logger = logging.getLogger("ideascout")


def _print_results(results: dict) -> None:
    print(json.dumps(results, indent=2, default=str))


def cmd_init_db(config: dict, args: list[str]) -> None:
    """Initialize the SQLite database."""
    db_path = get_db_path(config)
    init_db(db_path)
    print(f"Database initialized at {db_path}")


def cmd_sync_sources(config: dict, args: list[str]) -> None:
    """Copy the configured sources into the database."""
    from ideascout.pipeline import sync_sources

    init_db(get_db_path(config))
    conn = get_connection(get_db_path(config))
    try:
        count = sync_sources(config, conn)
        sources = get_sources(conn, enabled_only=False)
    finally:
        conn.close()

    print(f"Synced {count} sources")
    for s in sources:
        state = "enabled" if s.enabled else "disabled"
        print(f"  {s.name:<16} {s.kind:<12} {s.platform:<12} {state}")


async def cmd_run(config: dict, args: list[str]) -> None:
    """Run the intelligence engine (collect, score, correlate, velocity)."""
    from ideascout.pipeline import run_intelligence_engine

    init_db(get_db_path(config))
    _print_results(await run_intelligence_engine(config, manual_trigger=True))


async def cmd_collect(config: dict, args: list[str]) -> None:
    from ideascout.pipeline import run_collection

    init_db(get_db_path(config))
    _print_results(await run_collection(config))


async def cmd_score(config: dict, args: list[str]) -> None:
    from ideascout.pipeline import run_scoring

    init_db(get_db_path(config))
    _print_results(await run_scoring(config))


async def cmd_correlate(config: dict, args: list[str]) -> None:
    from ideascout.pipeline import run_correlation

    init_db(get_db_path(config))
    _print_results(await run_correlation(config))


async def cmd_report(config: dict, args: list[str]) -> None:
    """Generate the daily report, optionally for a given YYYY-MM-DD."""
    from ideascout.db import get_daily_report
    from ideascout.pipeline import run_daily_report
    from ideascout.synthesize.report import format_report

    report_date = None
    if args:
        try:
            report_date = date.fromisoformat(args[0]).isoformat()
        except ValueError:
            print(f"Invalid report date {args[0]!r}; expected YYYY-MM-DD")
            print("Usage: python -m ideascout report [YYYY-MM-DD]")
            sys.exit(2)

    init_db(get_db_path(config))
    result = await run_daily_report(config, report_date)

    conn = get_connection(get_db_path(config))
    try:
        snapshot = get_daily_report(conn, result["report_date"])
    finally:
        conn.close()
    print(format_report(snapshot))


def cmd_serve(config: dict, args: list[str]) -> None:
    """Serve the HTTP API with uvicorn."""
    import uvicorn

    from ideascout.api import create_app

    api_cfg = config.get("api", {})
    uvicorn.run(
        create_app(config),
        host=api_cfg.get("host", "127.0.0.1"),
        port=int(api_cfg.get("port", 8000)),
        log_config=None,
    )


def cmd_stats(config: dict, args: list[str]) -> None:
    """Show recent pipeline run stats."""
    conn = get_connection(get_db_path(config))
    runs = get_recent_runs(conn, limit=10)
    conn.close()

    if not runs:
        print("No pipeline runs yet.")
        return

    header = (
        f"{'Run':>4} {'Job':<12} {'Status':<10} {'Collected':<10} "
        f"{'Scored':<8} {'Trends':<7} {'Errors':<7} {'Cost':>8} {'Started'}"
    )
    print(header)
    print("-" * 90)
    for r in runs:
        errors = len(json.loads(r["errors"] or "[]"))
        print(
            f"{r['id']:>4} {r['job']:<12} {r['status']:<10} "
            f"{r['collected']:<10} {r['processed']:<8} "
            f"{r['correlations_found']:<7} {errors:<7} "
            f"${r['llm_cost_usd']:>7.3f} {r['started_at']}"
        )


COMMANDS = {
    "run": cmd_run,
    "collect": cmd_collect,
    "score": cmd_score,
    "correlate": cmd_correlate,
    "report": cmd_report,
    "init-db": cmd_init_db,
    "sync-sources": cmd_sync_sources,
    "stats": cmd_stats,
    "serve": cmd_serve,
}


def main() -> None:
    if len(sys.argv) < 2 or sys.argv[1] not in COMMANDS:
        available = ", ".join(COMMANDS)
        print(f"Usage: python -m ideascout {{{available}}} [args]")
        sys.exit(1)

    command = sys.argv[1]
    try:
        config = load_config(os.environ.get("CONFIG_PATH", "config.yaml"))
        validate_config(config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}")
        sys.exit(2)

    setup_logging(config)
    handler = COMMANDS[command]
    args = sys.argv[2:]

    try:
        if asyncio.iscoroutinefunction(handler):
            asyncio.run(handler(config, args))
        else:
            handler(config, args)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        sys.exit(2)


if __name__ == "__main__":
    main()
