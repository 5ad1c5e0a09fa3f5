from datetime import date
from typing import Optional

import structlog
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from followup.exceptions import NotAuthenticatedError, NotFoundError, RecordOwnershipError
from followup.models.medical_record import MedicalRecord
from followup.models.patient import Patient
from followup.models.user import Profile
from followup.schemas.auth import ProfileOut
from followup.schemas.medical_record import (
    MedicalRecordCreate,
    MedicalRecordResponse,
    MedicalRecordUpdate,
)
from followup.services.overdue_service import is_record_overdue

logger = structlog.get_logger(__name__)


def can_edit_record(record: MedicalRecord, requester_id: Optional[str]) -> bool:
    """Only the authoring clinician may amend a record."""
    return requester_id is not None and record.doctor_id == requester_id


def ensure_can_edit(record: MedicalRecord, requester_id: Optional[str]) -> None:
    if not can_edit_record(record, requester_id):
        raise RecordOwnershipError(record.id, requester_id)


def _to_response(
    record: MedicalRecord, today: date, doctor_name: Optional[str] = None
) -> MedicalRecordResponse:
    response = MedicalRecordResponse.model_validate(record)
    response.patient_name = record.patient.full_name if record.patient else None
    response.doctor_name = doctor_name
    response.is_overdue = is_record_overdue(record, today)
    return response


class RecordService:
    async def list_records(self, db: AsyncSession, today: date, limit: int = 100) -> list[MedicalRecordResponse]:
        """Newest first, with the patient's and the author's names."""
        result = await db.execute(
            select(MedicalRecord, Profile.full_name)
            .outerjoin(Profile, Profile.user_id == MedicalRecord.doctor_id)
            .options(selectinload(MedicalRecord.patient))
            .order_by(MedicalRecord.created_at.desc())
            .limit(limit)
        )
        return [_to_response(record, today, doctor_name) for record, doctor_name in result.all()]

    async def count_records(self, db: AsyncSession) -> int:
        return await db.scalar(select(func.count(MedicalRecord.id))) or 0

    async def create_record(
        self,
        db: AsyncSession,
        data: MedicalRecordCreate,
        author: Optional[ProfileOut],
        today: date,
    ) -> MedicalRecordResponse:
        if author is None:
            raise NotAuthenticatedError("A resolved profile is required to write records")

        patient = await db.get(Patient, data.patient_id)
        if not patient:
            raise NotFoundError("Patient", data.patient_id)

        record = MedicalRecord(doctor_id=author.user_id, patient=patient, **data.model_dump())
        db.add(record)
        await db.flush()
        await db.refresh(record, attribute_names=["created_at"])
        logger.info(
            "records.created",
            record_id=record.id,
            patient_id=record.patient_id,
            doctor_id=record.doctor_id,
            return_deadline_date=str(record.return_deadline_date) if record.return_deadline_date else None,
        )
        return _to_response(record, today, author.full_name)

    async def update_record(
        self,
        db: AsyncSession,
        record_id: str,
        data: MedicalRecordUpdate,
        requester_id: Optional[str],
        today: date,
    ) -> MedicalRecordResponse:
        result = await db.execute(
            select(MedicalRecord)
            .where(MedicalRecord.id == record_id)
            .options(selectinload(MedicalRecord.patient))
        )
        record = result.scalar_one_or_none()
        if not record:
            raise NotFoundError("Medical record", record_id)

        # Checked before touching any attribute
        ensure_can_edit(record, requester_id)

        update_data = data.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(record, key, value)
        await db.flush()

        doctor_name = await db.scalar(select(Profile.full_name).where(Profile.user_id == record.doctor_id))
        logger.info("records.updated", record_id=record_id, fields=sorted(update_data))
        return _to_response(record, today, doctor_name)


record_service = RecordService()
