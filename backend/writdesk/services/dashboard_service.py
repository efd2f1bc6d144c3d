"""
Dashboard aggregation: totals, status pie, per-branch bars, recent writs.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from writdesk.core.config import settings
from writdesk.schemas import (
    BranchBar,
    BranchCount,
    DashboardMetrics,
    DashboardResponse,
    PieSegment,
    RecentWrit,
    StatusCount,
    Writ,
)
from writdesk.services.case_api_client import CaseApiClient
from writdesk.utils.helpers import format_date, format_status_label, parse_datetime

logger = logging.getLogger(__name__)

STATUS_COLOR_MAP = {
    "REGISTERED": "#60a5fa",
    "UNDER_INVESTIGATION": "#f97316",
    "ONGOING_HEARING": "#fbbf24",
    "CHARGESHEET_FILED": "#34d399",
    "CLOSED": "#a855f7",
    "WITHDRAWN": "#f87171",
}
DEFAULT_STATUS_COLOR = "#6366f1"

BRANCH_COLOR_PALETTE = [
    "#4f46e5",
    "#16a34a",
    "#dc2626",
    "#0ea5e9",
    "#f97316",
    "#a855f7",
    "#059669",
    "#eab308",
]

_EPOCH = datetime(1970, 1, 1)


def status_counts_from_writs(writs: Iterable[Writ]) -> List[StatusCount]:
    counts: Dict[str, int] = {}
    for writ in writs:
        status = writ.status or "UNKNOWN"
        counts[status] = counts.get(status, 0) + 1
    return [StatusCount(status=status, count=count) for status, count in counts.items()]


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def pie_segments(status_counts: List[StatusCount]) -> List[PieSegment]:
    """Consecutive arcs of a 360 degree pie, one per status."""
    total = sum(item.count for item in status_counts)
    segments = []
    angle = 0.0
    for item in status_counts:
        sweep = (item.count / total) * 360 if total else 0.0
        segments.append(
            PieSegment(
                key=item.status,
                label=format_status_label(item.status),
                count=item.count,
                percent=_round_half_up(item.count / total * 100) if total else 0,
                color=STATUS_COLOR_MAP.get(item.status, DEFAULT_STATUS_COLOR),
                start_angle=angle,
                end_angle=angle + sweep,
            )
        )
        angle += sweep
    return segments


def branch_bars(branches: List[BranchCount]) -> List[BranchBar]:
    """Bars sorted by count; `value` is relative to the largest, `percent` to the total."""
    if not branches:
        return []
    ordered = sorted(branches, key=lambda b: b.count, reverse=True)
    total = sum(b.count for b in ordered)
    largest = max(max(b.count for b in ordered), 1)
    return [
        BranchBar(
            label=b.branch,
            count=b.count,
            value=_round_half_up(b.count / largest * 100),
            percent=_round_half_up(b.count / total * 100) if total else 0,
            color=BRANCH_COLOR_PALETTE[index % len(BRANCH_COLOR_PALETTE)],
        )
        for index, b in enumerate(ordered)
    ]


def recent_writs(writs: Iterable[Writ], limit: Optional[int] = None) -> List[RecentWrit]:
    limit = settings.RECENT_WRITS_LIMIT if limit is None else limit
    ordered = sorted(
        writs,
        key=lambda w: parse_datetime(w.date_of_filing or w.date_of_fir) or _EPOCH,
        reverse=True,
    )
    return [
        RecentWrit(
            id=w.id,
            writ_number=w.writ_number,
            fir_number=w.fir_number,
            petitioner_name=w.petitioner_name,
            status_label=format_status_label(w.status),
            filed_on=format_date(w.filed_on) or None,
        )
        for w in ordered[:limit]
    ]


def build_dashboard(
    writs: List[Writ],
    metrics: DashboardMetrics,
    branches: List[BranchCount],
) -> DashboardResponse:
    status_counts = metrics.status_counts or status_counts_from_writs(writs)
    return DashboardResponse(
        total_cases=metrics.total_cases or len(writs),
        ongoing_cases=metrics.ongoing_cases,
        closed_cases=metrics.closed_cases,
        status_counts=status_counts,
        pie_segments=pie_segments(status_counts),
        branch_bars=branch_bars(branches),
        recent_writs=recent_writs(writs),
    )


async def load_dashboard(client: CaseApiClient) -> DashboardResponse:
    writs, metrics, branches = await asyncio.gather(
        client.list_writs(),
        client.get_dashboard_metrics(),
        client.get_branch_graph(),
    )
    logger.info("Dashboard loaded: %d writs, %d branches", len(writs), len(branches))
    return build_dashboard(writs, metrics, branches)
