from pydantic import BaseModel
from datetime import date, datetime
from typing import Optional


class MedicalRecordCreate(BaseModel):
    patient_id: str
    diagnosis: Optional[str] = None
    prescription: Optional[str] = None
    clinical_notes: Optional[str] = None
    return_deadline_date: Optional[date] = None


class MedicalRecordUpdate(BaseModel):
    diagnosis: Optional[str] = None
    prescription: Optional[str] = None
    clinical_notes: Optional[str] = None
    return_deadline_date: Optional[date] = None


class MedicalRecordResponse(BaseModel):
    id: str
    patient_id: str
    doctor_id: str
    diagnosis: Optional[str] = None
    prescription: Optional[str] = None
    clinical_notes: Optional[str] = None
    return_deadline_date: Optional[date] = None
    created_at: Optional[datetime] = None
    patient_name: Optional[str] = None
    doctor_name: Optional[str] = None
    is_overdue: bool = False

    class Config:
        from_attributes = True


class MedicalRecordListResponse(BaseModel):
    records: list[MedicalRecordResponse]
    total: int
