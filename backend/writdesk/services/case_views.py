"""
services/case_views.py

Pure derivations over fetched writ and proceeding collections:
latest proceeding per writ, the upcoming-hearing queue, the filtered
proceeding listing, writ list filtering and the draft-aware writ pickers.

Nothing here performs I/O; `now` is injectable for tests.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, TypeVar

from writdesk.core.config import settings
from writdesk.schemas import Proceeding, ProceedingStats, UpcomingHearing, Writ
from writdesk.utils.helpers import (
    PROCEEDING_TYPE_LABELS,
    calendar_days_between,
    format_date,
    parse_datetime,
    utcnow,
)

T = TypeVar("T")

_EPOCH = datetime(1970, 1, 1)


# ============================================================================
# Accessors
# ============================================================================

def writ_id_of(proceeding: Proceeding) -> Optional[str]:
    """Writ id whether `fir` is a bare id or a populated writ."""
    fir = proceeding.fir
    if isinstance(fir, Writ):
        return fir.id
    return fir or None


def hearing_date_of(proceeding: Proceeding) -> Optional[datetime]:
    details = proceeding.hearing_details
    if not details:
        return None
    return parse_datetime(details.date_of_hearing)


def _created_at(proceeding: Proceeding) -> datetime:
    return parse_datetime(proceeding.created_at) or _EPOCH


def _is_today_or_later(hearing: Optional[datetime], now: datetime) -> bool:
    return hearing is not None and hearing.date() >= now.date()


def _recency_key(proceeding: Proceeding) -> Tuple[float, datetime]:
    seq = proceeding.sequence
    return (float("-inf") if seq is None else float(seq), _created_at(proceeding))


# ============================================================================
# Latest-per-writ and upcoming hearings
# ============================================================================

def latest_per_writ(proceedings: Iterable[Proceeding]) -> Dict[str, Proceeding]:
    """
    One representative per writ: highest sequence, ties broken by the latest
    createdAt. Proceedings without a writ reference are skipped.
    """
    latest: Dict[str, Proceeding] = {}
    for proceeding in proceedings:
        writ_id = writ_id_of(proceeding)
        if not writ_id:
            continue
        current = latest.get(writ_id)
        if current is None or _recency_key(proceeding) > _recency_key(current):
            latest[writ_id] = proceeding
    return latest


def upcoming_hearings(
    proceedings: Iterable[Proceeding],
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
    urgent_within_days: Optional[int] = None,
) -> List[UpcomingHearing]:
    """
    Hearing queue built from each writ's current proceeding: hearings today or
    later, earliest first, capped at `limit`. Urgent means at most
    `urgent_within_days` calendar days away.
    """
    now = now or utcnow()
    limit = settings.UPCOMING_HEARINGS_LIMIT if limit is None else limit
    urgent_within_days = settings.URGENT_HEARING_DAYS if urgent_within_days is None else urgent_within_days

    queue: List[Tuple[datetime, str, Proceeding]] = []
    for writ_id, proceeding in latest_per_writ(proceedings).items():
        hearing = hearing_date_of(proceeding)
        if not _is_today_or_later(hearing, now):
            continue
        queue.append((hearing, writ_id, proceeding))

    queue.sort(key=lambda item: item[0])

    out: List[UpcomingHearing] = []
    for hearing, writ_id, proceeding in queue[: max(limit, 0)]:
        days_until = calendar_days_between(now, hearing)
        out.append(
            UpcomingHearing(
                proceeding=proceeding,
                writ_id=writ_id,
                hearing_date=format_date(hearing),
                days_until=days_until,
                urgent=days_until <= urgent_within_days,
                type_label=PROCEEDING_TYPE_LABELS.get(proceeding.type, proceeding.type),
            )
        )
    return out


# ============================================================================
# Proceeding listing
# ============================================================================

def _writ_lookup(writs: Optional[Iterable[Writ]]) -> Dict[str, Writ]:
    return {w.id: w for w in (writs or [])}


def writ_for(proceeding: Proceeding, lookup: Dict[str, Writ]) -> Optional[Writ]:
    if proceeding.writ is not None:
        return proceeding.writ
    writ_id = writ_id_of(proceeding)
    return lookup.get(writ_id) if writ_id else None


def _matches_term(proceeding: Proceeding, writ: Optional[Writ], term: str) -> bool:
    details = proceeding.hearing_details
    haystack = [
        proceeding.summary,
        details.judge_name if details else None,
        details.court_number if details else None,
    ]
    if writ is not None:
        haystack.extend([writ.writ_number, writ.fir_number, writ.petitioner_name])
    return any(term in value.lower() for value in haystack if value)


def _listing_sort_key(proceeding: Proceeding) -> datetime:
    return hearing_date_of(proceeding) or parse_datetime(proceeding.created_at) or _EPOCH


def filter_proceedings(
    proceedings: Iterable[Proceeding],
    search: Optional[str] = None,
    proceeding_type: Optional[str] = None,
    writ_id: Optional[str] = None,
    writs: Optional[Iterable[Writ]] = None,
) -> List[Proceeding]:
    """
    Free-text search (case-insensitive) over summary, judge, court number,
    writ/FIR number and petitioner name, optional exact type and writ filters.
    Sorted newest hearing first, falling back to creation date.
    """
    lookup = _writ_lookup(writs)
    term = (search or "").strip().lower()
    if proceeding_type in ("", "ALL"):
        proceeding_type = None
    if writ_id in ("", "ALL"):
        writ_id = None

    out: List[Proceeding] = []
    for proceeding in proceedings:
        if term and not _matches_term(proceeding, writ_for(proceeding, lookup), term):
            continue
        if proceeding_type and proceeding.type != proceeding_type:
            continue
        if writ_id and writ_id_of(proceeding) != writ_id:
            continue
        out.append(proceeding)

    out.sort(key=_listing_sort_key, reverse=True)
    return out


def proceeding_stats(proceedings: Sequence[Proceeding], now: Optional[datetime] = None) -> ProceedingStats:
    now = now or utcnow()
    upcoming = 0
    by_type: Dict[str, int] = {}
    for proceeding in proceedings:
        if _is_today_or_later(hearing_date_of(proceeding), now):
            upcoming += 1
        by_type[proceeding.type] = by_type.get(proceeding.type, 0) + 1
    return ProceedingStats(total=len(proceedings), upcoming=upcoming, by_type=by_type)


def writ_timeline(proceedings: Iterable[Proceeding]) -> List[Proceeding]:
    """A writ's proceedings, newest first (sequence, then createdAt)."""
    return sorted(
        proceedings,
        key=_recency_key,
        reverse=True,
    )


# ============================================================================
# Writ listing
# ============================================================================

def _writ_haystack(writ: Writ) -> str:
    parts = [
        writ.fir_number,
        writ.petitioner_name,
        writ.branch_name,
        writ.branch,
        writ.police_station,
        writ.investigating_officer,
        " ".join(io.name for io in writ.investigating_officers if io.name),
        writ.writ_number,
        writ.under_section,
        writ.act,
    ]
    return " ".join(part for part in parts if part).lower()


def filter_writs(
    writs: Iterable[Writ],
    search: Optional[str] = None,
    status: Optional[str] = None,
    branch: Optional[str] = None,
) -> List[Writ]:
    term = (search or "").strip().lower()
    branch_term = (branch or "").strip().lower()
    out: List[Writ] = []
    for writ in writs:
        if term and term not in _writ_haystack(writ):
            continue
        if status and status != "all" and writ.status != status:
            continue
        if branch_term and branch_term not in writ.display_branch.lower():
            continue
        out.append(writ)
    return out


def paginate_visible(items: Sequence[T], visible_count: Optional[int] = None) -> Tuple[List[T], bool]:
    """'Show more' window: first `visible_count` items and whether more remain."""
    count = settings.WRIT_LIST_PAGE_SIZE if visible_count is None else max(visible_count, 0)
    return list(items[:count]), len(items) > count


# ============================================================================
# Draft-aware pickers
# ============================================================================

def writs_for_new_proceeding(writs: Iterable[Writ], draft_writ_ids: Set[str]) -> List[Writ]:
    """Writs offered in 'new proceeding' pickers: those without an open draft."""
    return [w for w in writs if w.id not in draft_writ_ids]


def writs_with_drafts(writs: Iterable[Writ], draft_writ_ids: Set[str]) -> List[Writ]:
    """Writs listed under 'resume draft'."""
    return [w for w in writs if w.id in draft_writ_ids]
