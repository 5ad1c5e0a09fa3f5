from pydantic import BaseModel
from datetime import date
from typing import Optional
from followup.enums import Severity


class OverdueEntry(BaseModel):
    """A patient past their governing return deadline with nothing scheduled. Never stored."""

    patient_id: str
    full_name: str
    cns: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    territory: Optional[str] = None
    return_deadline_date: date
    days_overdue: int
    severity: Optional[Severity] = None
    last_diagnosis: Optional[str] = None


class OverdueListResponse(BaseModel):
    patients: list[OverdueEntry]
    total: int
    as_of: date
