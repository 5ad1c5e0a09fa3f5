from pydantic import BaseModel
from typing import Optional


class DashboardStats(BaseModel):
    """Counts for the panels the user may see; unauthorized counts stay None."""

    total_patients: Optional[int] = None
    scheduled_appointments: Optional[int] = None
    overdue_patients: Optional[int] = None


class DashboardResponse(BaseModel):
    greeting: str
    role: Optional[str] = None
    panels: list[str]
    stats: DashboardStats
