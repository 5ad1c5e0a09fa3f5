import asyncio
from datetime import date

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from followup.database import run_in_session
from followup.models.patient import Patient
from followup.panels import Panel
from followup.schemas.dashboard import DashboardStats
from followup.services.overdue_service import overdue_service


async def count_patients(db: AsyncSession) -> int:
    return await db.scalar(select(func.count(Patient.id))) or 0


class DashboardService:
    async def get_stats(
        self, session_factory: async_sessionmaker, panels: frozenset, today: date
    ) -> DashboardStats:
        """Fetch only the counts behind authorized panels, concurrently."""
        jobs = {}
        if Panel.POPULATION_TOTALS in panels:
            jobs["total_patients"] = run_in_session(session_factory, count_patients)
            jobs["scheduled_appointments"] = run_in_session(session_factory, overdue_service.count_scheduled)
        if Panel.OVERDUE_COUNT in panels:
            jobs["overdue_patients"] = run_in_session(session_factory, overdue_service.count_overdue, today)

        values = await asyncio.gather(*jobs.values())
        return DashboardStats(**dict(zip(jobs.keys(), values)))


dashboard_service = DashboardService()
