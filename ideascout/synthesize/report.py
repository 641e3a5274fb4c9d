"""Daily report rollup: top ideas, special mentions, trend rows and alerts."""

from __future__ import annotations

import logging
import sqlite3
from collections import Counter

from ideascout.db import (
    count_scored_items,
    get_scored_items,
    get_top_scored_items,
    insert_alert,
    replace_trend_rows,
    upsert_daily_report,
)
from ideascout.models import Alert, DailyReportSnapshot, RawItem, TrendRow, utcnow
from ideascout.process.keywords import top_keywords

logger = logging.getLogger(__name__)

TOP_N = 15
SPECIAL_MENTION_LIMIT = 5
SPECIAL_MIN_MARKET = 80
SPECIAL_MIN_OVERALL = 70
ALERT_THRESHOLD = 85

UNCATEGORIZED = "Uncategorized"


def percent(value: float | None) -> float:
    """0-1 score to the 0-100 display scale."""
    return round((value or 0.0) * 100, 1)


def report_scores(item: RawItem) -> dict:
    """Display scores for one item.

    The market score uses the cluster's market opportunity once the item
    has been correlated, and the item's own market timing before that.
    """
    scores = item.scores
    if item.correlation_id is not None and item.market_opportunity_score is not None:
        market = item.market_opportunity_score
    else:
        market = scores.market_timing if scores else None
    return {
        "overall_score": percent(scores.overall if scores else None),
        "market_score": percent(market),
        "roi_score": percent(scores.business_viability if scores else None),
        "development_score": percent(scores.technical_feasibility if scores else None),
        "competition_score": percent(scores.competitive_advantage if scores else None),
    }


def special_mention_reason(scores: dict) -> str:
    if scores["market_score"] >= 90:
        return "Exceptional Market Opportunity"
    if scores["roi_score"] >= 85:
        return "High ROI Potential"
    if scores["development_score"] >= 90:
        return "Low Development Risk"
    if scores["competition_score"] >= 85:
        return "Low Competition Environment"
    return "Strategic Innovation Opportunity"


def summarize(top: list[dict], total: int) -> str:
    if not top:
        return f"No scored startup ideas yet ({total} analyzed)."
    avg = sum(entry["overall_score"] for entry in top) / len(top)
    categories = Counter(entry["category"] or UNCATEGORIZED for entry in top)
    top_category, top_count = categories.most_common(1)[0]
    return (
        f"Today's analysis of {total} startup ideas found {len(top)} leading "
        f"opportunities. The average score among top performers is "
        f"{avg:.1f}/100. {top_category} leads with {top_count} ideas "
        f"in the top {len(top)}."
    )


def build_trend_rows(
    report_date: str, items: list[RawItem], top: list[dict],
) -> list[TrendRow]:
    """Per-category and per-industry averages over the top items."""
    by_id = {item.id: item for item in items}
    rows = []
    for dimension in ("category", "industry"):
        groups: dict[str, list[dict]] = {}
        for entry in top:
            name = entry.get(dimension)
            if dimension == "category":
                name = name or UNCATEGORIZED
            if not name:
                continue
            groups.setdefault(name, []).append(entry)

        for name, entries in groups.items():
            scores = [e["overall_score"] for e in entries]
            rows.append(
                TrendRow(
                    trend_date=report_date,
                    dimension=dimension,
                    name=name,
                    avg_score=round(sum(scores) / len(scores), 2),
                    item_count=len(entries),
                    trending_keywords=top_keywords(
                        [by_id[e["id"]].text for e in entries if e["id"] in by_id]
                    ),
                )
            )
    return rows


class ReportGenerator:
    """Build and upsert the snapshot for one date.

    Trend rows and alerts are written after the snapshot, each in its own
    error handler, so they never block the snapshot itself.
    """

    def __init__(self, config: dict, conn: sqlite3.Connection):
        cfg = config.get("report", {})
        self.conn = conn
        self.top_n = cfg.get("top_n", TOP_N)
        self.special_limit = cfg.get("special_mention_limit", SPECIAL_MENTION_LIMIT)
        self.special_min_market = cfg.get("special_min_market", SPECIAL_MIN_MARKET)
        self.special_min_overall = cfg.get("special_min_overall", SPECIAL_MIN_OVERALL)
        self.alert_threshold = cfg.get("alert_threshold", ALERT_THRESHOLD)
        self.errors: list[str] = []
        self.alerts_created = 0

    def generate(self, report_date: str | None = None) -> DailyReportSnapshot:
        report_date = report_date or utcnow().date().isoformat()

        top_items = get_top_scored_items(self.conn, self.top_n)
        total = count_scored_items(self.conn)
        top = [
            {
                "rank": rank,
                **self._entry(item),
                "source_platform": item.source_platform,
                "source_url": item.source_url,
            }
            for rank, item in enumerate(top_items, 1)
        ]

        snapshot = DailyReportSnapshot(
            report_date=report_date,
            total_analyzed=total,
            top_items=top,
            special_mentions=self._special_mentions(),
            summary=summarize(top, total),
        )
        snapshot.id = upsert_daily_report(self.conn, snapshot)
        logger.info(
            "Report %s: %d top ideas, %d special mentions, %d analyzed",
            report_date, len(top), len(snapshot.special_mentions), total,
        )

        try:
            replace_trend_rows(
                self.conn, report_date, build_trend_rows(report_date, top_items, top),
            )
        except Exception as exc:
            logger.exception("Updating historical trends failed")
            self.errors.append(f"Report Rollup: historical trends: {exc}")

        try:
            self._raise_alerts(top)
        except Exception as exc:
            logger.exception("Generating alerts failed")
            self.errors.append(f"Report Rollup: alerts: {exc}")

        return snapshot

    @staticmethod
    def _entry(item: RawItem) -> dict:
        return {
            "id": item.id,
            "title": item.title,
            "description": item.description,
            "category": item.category,
            "industry": item.industry,
            **report_scores(item),
        }

    def _special_mentions(self) -> list[dict]:
        candidates = []
        for item in get_scored_items(self.conn):
            entry = self._entry(item)
            if (
                entry["market_score"] >= self.special_min_market
                and entry["overall_score"] >= self.special_min_overall
            ):
                entry["reason"] = special_mention_reason(entry)
                candidates.append(entry)
        candidates.sort(key=lambda e: (-e["overall_score"], e["id"]))
        return candidates[: self.special_limit]

    def _raise_alerts(self, top: list[dict]) -> None:
        for entry in top:
            if entry["overall_score"] < self.alert_threshold:
                continue
            insert_alert(
                self.conn,
                Alert(
                    alert_type="high_score_alert",
                    title="High-Scoring Opportunity Detected",
                    message=(
                        f"{entry['title']} achieved an exceptional score of "
                        f"{entry['overall_score']}/100 in the "
                        f"{entry['category'] or UNCATEGORIZED} sector."
                    ),
                    severity="high",
                    related_item_id=entry["id"],
                ),
            )
            self.alerts_created += 1


def format_report(snapshot: DailyReportSnapshot) -> str:
    """Plain-text rendering for the command line."""
    lines = [
        f"DAILY IDEA REPORT - {snapshot.report_date}",
        "=" * 40,
        snapshot.summary,
        "",
        "TOP IDEAS",
    ]
    for entry in snapshot.top_items:
        lines.append(
            f"{entry['rank']:>3}. {entry['title'][:70]} "
            f"[{entry['overall_score']:.1f}] ({entry['source_platform']})"
        )
    if snapshot.special_mentions:
        lines.append("")
        lines.append("SPECIAL MENTIONS")
        for entry in snapshot.special_mentions:
            lines.append(f"  * {entry['title'][:70]} - {entry['reason']}")
    lines.append("")
    lines.append(f"{snapshot.total_analyzed} ideas analyzed")
    return "\n".join(lines)
