from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional
from followup.enums import Priority


class PatientBase(BaseModel):
    full_name: str
    cns: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    territory: Optional[str] = None
    manual_priority: Optional[Priority] = None

    class Config:
        use_enum_values = True


class PatientCreate(PatientBase):
    pass


class PatientUpdate(BaseModel):
    full_name: Optional[str] = None
    cns: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    territory: Optional[str] = None
    manual_priority: Optional[Priority] = None

    @field_validator("full_name")
    @classmethod
    def full_name_not_blank(cls, value: Optional[str]) -> str:
        # Only runs when the field is sent; omitting it leaves the name as is
        if value is None or not value.strip():
            raise ValueError("full_name cannot be null or blank")
        return value.strip()

    class Config:
        use_enum_values = True


class PatientResponse(PatientBase):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        use_enum_values = True


class PatientListResponse(BaseModel):
    patients: list[PatientResponse]
    total: int
