from typing import Optional

import structlog
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from followup.exceptions import NotFoundError
from followup.models.patient import Patient
from followup.schemas.patient import PatientCreate, PatientUpdate

logger = structlog.get_logger(__name__)


class PatientService:
    async def search(
        self, db: AsyncSession, search: str = "", territory: Optional[str] = None
    ) -> tuple[list[Patient], int]:
        """Patients ordered by name. `search` matches name or CNS, case-insensitive."""
        query = select(Patient)
        term = search.strip()
        if term:
            query = query.where(
                or_(Patient.full_name.ilike(f"%{term}%"), Patient.cns.ilike(f"%{term}%"))
            )
        if territory:
            query = query.where(Patient.territory == territory)

        total = await db.scalar(select(func.count()).select_from(query.subquery())) or 0
        result = await db.execute(query.order_by(Patient.full_name, Patient.id))
        return list(result.scalars().all()), total

    async def get(self, db: AsyncSession, patient_id: str) -> Patient:
        patient = await db.get(Patient, patient_id)
        if patient is None:
            raise NotFoundError("Patient", patient_id)
        return patient

    async def create(self, db: AsyncSession, data: PatientCreate) -> Patient:
        patient = Patient(**data.model_dump())
        db.add(patient)
        await db.flush()
        await db.refresh(patient)
        logger.info("patients.created", patient_id=patient.id, territory=patient.territory)
        return patient

    async def update(self, db: AsyncSession, patient_id: str, data: PatientUpdate) -> Patient:
        patient = await self.get(db, patient_id)
        changes = data.model_dump(exclude_unset=True)
        for key, value in changes.items():
            setattr(patient, key, value)
        await db.flush()
        await db.refresh(patient)
        logger.info("patients.updated", patient_id=patient_id, fields=sorted(changes))
        return patient


patient_service = PatientService()
