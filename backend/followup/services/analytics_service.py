import asyncio
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

import structlog
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from followup.database import run_in_session
from followup.enums import Priority
from followup.models.appointment import Appointment
from followup.models.community_visit import CommunityVisit
from followup.models.patient import Patient
from followup.schemas.analytics import AnalyticsSummary, DelayBucket, EffectivenessItem, PriorityBucket
from followup.services.overdue_service import as_utc, overdue_service

logger = structlog.get_logger(__name__)

EFFECTIVENESS_WINDOW_DAYS = 30

UNASSIGNED = "unassigned"

# Fixed order and colors, keyed by severity semantics
PRIORITY_BUCKETS = [
    (UNASSIGNED, "Não Definida", "#9CA3AF"),
    (Priority.LOW.value, "Verde (Baixa)", "#22C55E"),
    (Priority.MEDIUM.value, "Amarelo (Média)", "#EAB308"),
    (Priority.HIGH.value, "Laranja (Alta)", "#F97316"),
    (Priority.URGENT.value, "Vermelho (Urgente)", "#EF4444"),
]

DELAY_BUCKETS = [
    ("current", "Em dia"),
    ("1-14", "1-14 dias"),
    ("15-30", "15-30 dias"),
    (">30", "> 30 dias"),
]


def priority_distribution(priorities: Iterable[Optional[str]]) -> list[PriorityBucket]:
    """Count patients per priority tag; empty buckets are left out."""
    known = {key for key, _, _ in PRIORITY_BUCKETS}
    counts = {key: 0 for key in known}
    for tag in priorities:
        key = getattr(tag, "value", tag) or UNASSIGNED
        if key not in known:
            logger.warning("analytics.unknown_priority", priority=key)
            key = UNASSIGNED
        counts[key] += 1

    return [
        PriorityBucket(key=key, name=name, value=counts[key], color=color)
        for key, name, color in PRIORITY_BUCKETS
        if counts[key] > 0
    ]


def delay_bucket(days_overdue: Optional[int]) -> str:
    days = days_overdue or 0
    if days <= 0:
        return "current"
    if days <= 14:
        return "1-14"
    if days <= 30:
        return "15-30"
    return ">30"


def delay_distribution(days_values: Iterable[Optional[int]]) -> list[DelayBucket]:
    """All four buckets, always present; counts sum to the number of rows."""
    counts = {key: 0 for key, _ in DELAY_BUCKETS}
    for days in days_values:
        counts[delay_bucket(days)] += 1
    return [DelayBucket(key=key, name=name, value=counts[key]) for key, name in DELAY_BUCKETS]


def effectiveness(visits_count: int, appointments_count: int) -> list[EffectivenessItem]:
    return [
        EffectivenessItem(key="visits", name="Visitas Realizadas", value=visits_count or 0),
        EffectivenessItem(key="appointments", name="Consultas Agendadas", value=appointments_count or 0),
    ]


def window_start(now: datetime, window_days: int) -> datetime:
    return as_utc(now) - timedelta(days=window_days)


def count_since(items: Iterable, cutoff: datetime) -> int:
    return sum(1 for item in items if item.created_at is not None and as_utc(item.created_at) >= cutoff)


def build_summary(
    priority_tags: Iterable[Optional[str]],
    days_overdue: Iterable[Optional[int]],
    visits_count: int,
    appointments_count: int,
    window_days: int,
    generated_at: datetime,
) -> AnalyticsSummary:
    """Single assembly point for the three independent summaries."""
    return AnalyticsSummary(
        priority_distribution=priority_distribution(priority_tags),
        delay_distribution=delay_distribution(days_overdue),
        effectiveness=effectiveness(visits_count, appointments_count),
        window_days=window_days,
        generated_at=generated_at,
    )


def compute_analytics(
    patients: Iterable,
    overdue_entries: Iterable,
    visits: Iterable,
    appointments: Iterable,
    window_days: int = EFFECTIVENESS_WINDOW_DAYS,
    now: Optional[datetime] = None,
) -> AnalyticsSummary:
    """Director analytics from in-memory rows."""
    now = as_utc(now) or datetime.now(timezone.utc)
    cutoff = window_start(now, window_days)
    return build_summary(
        (p.manual_priority for p in patients),
        (e.days_overdue for e in overdue_entries),
        count_since(visits, cutoff),
        count_since(appointments, cutoff),
        window_days,
        now,
    )


class AnalyticsService:
    async def get_priority_tags(self, db: AsyncSession) -> list[Optional[str]]:
        result = await db.execute(select(Patient.manual_priority))
        return [tag for (tag,) in result.all()]

    async def count_visits_since(self, db: AsyncSession, cutoff: datetime) -> int:
        return await db.scalar(
            select(func.count(CommunityVisit.id)).where(CommunityVisit.created_at >= cutoff)
        ) or 0

    async def count_appointments_since(self, db: AsyncSession, cutoff: datetime) -> int:
        return await db.scalar(
            select(func.count(Appointment.id)).where(Appointment.created_at >= cutoff)
        ) or 0

    async def director_analytics(
        self,
        session_factory: async_sessionmaker,
        today: date,
        window_days: int = EFFECTIVENESS_WINDOW_DAYS,
        now: Optional[datetime] = None,
    ) -> AnalyticsSummary:
        """
        Run the store reads concurrently, each on its own session. The summary
        is only built once every read has finished; any failure propagates and
        nothing partial is returned.
        """
        now = as_utc(now) or datetime.now(timezone.utc)
        cutoff = window_start(now, window_days)

        tags, overdue, visits_count, appointments_count = await asyncio.gather(
            run_in_session(session_factory, self.get_priority_tags),
            run_in_session(session_factory, overdue_service.list_overdue, today),
            run_in_session(session_factory, self.count_visits_since, cutoff),
            run_in_session(session_factory, self.count_appointments_since, cutoff),
        )

        logger.info(
            "analytics.director_computed",
            patients=len(tags),
            overdue=len(overdue),
            visits=visits_count,
            appointments=appointments_count,
            window_days=window_days,
        )
        return build_summary(
            tags,
            (e.days_overdue for e in overdue),
            visits_count,
            appointments_count,
            window_days,
            now,
        )


analytics_service = AnalyticsService()
