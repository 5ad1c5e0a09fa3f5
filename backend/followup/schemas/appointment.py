from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from followup.enums import AppointmentStatus


class AppointmentCreate(BaseModel):
    patient_id: str
    scheduled_for: Optional[datetime] = None
    status: AppointmentStatus = AppointmentStatus.SCHEDULED.value

    class Config:
        use_enum_values = True


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus

    class Config:
        use_enum_values = True


class AppointmentResponse(BaseModel):
    id: str
    patient_id: str
    status: AppointmentStatus
    scheduled_for: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class VisitCreate(BaseModel):
    patient_id: str
    notes: Optional[str] = None


class VisitResponse(BaseModel):
    id: str
    patient_id: str
    agent_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
