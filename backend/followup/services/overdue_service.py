"""
Overdue derivation (Busca Ativa).

A patient is overdue when their governing return deadline lies strictly
before today and no appointment of theirs is currently scheduled.

Governing deadline per patient:
- only records carrying a return deadline count;
- a record whose deadline is today or later is current, and supersedes every
  record of the same patient created before it;
- among past deadlines recorded after the newest current record, the earliest
  one governs (most overdue); equal deadlines resolve to the newest record.
"""

from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Iterable, Optional

import structlog
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from followup.enums import AppointmentStatus, Severity
from followup.models.appointment import Appointment
from followup.models.medical_record import MedicalRecord
from followup.schemas.overdue import OverdueEntry

logger = structlog.get_logger(__name__)

CRITICAL_AFTER_DAYS = 30
HIGH_AFTER_DAYS = 14

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def classify_severity(days_overdue: Optional[int]) -> Optional[Severity]:
    """>30 critical, 15-30 high, 1-14 moderate, otherwise not overdue (None)."""
    if not days_overdue or days_overdue <= 0:
        return None
    if days_overdue > CRITICAL_AFTER_DAYS:
        return Severity.CRITICAL
    if days_overdue > HIGH_AFTER_DAYS:
        return Severity.HIGH
    return Severity.MODERATE


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps (SQLite) as UTC so they compare with aware ones."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _created(record) -> datetime:
    return as_utc(record.created_at) or _EPOCH


def is_record_overdue(record, today: date) -> bool:
    deadline = record.return_deadline_date
    return deadline is not None and deadline < today


def governing_record(records: Iterable, today: date):
    """Record whose deadline governs the patient's overdue status, or None."""
    dated = [r for r in records if r.return_deadline_date is not None]
    past = [r for r in dated if r.return_deadline_date < today]
    current = [r for r in dated if r.return_deadline_date >= today]

    if current:
        newest_current = max(_created(r) for r in current)
        past = [r for r in past if _created(r) > newest_current]
    if not past:
        return None

    # min() keeps the first of equal deadlines, so order newest first
    newest_first = sorted(past, key=_created, reverse=True)
    return min(newest_first, key=lambda r: r.return_deadline_date)


def _last_diagnosis(records: Iterable) -> Optional[str]:
    diagnosed = [r for r in records if r.diagnosis and r.diagnosis.strip()]
    if not diagnosed:
        return None
    return max(diagnosed, key=_created).diagnosis


def derive_overdue(records: Iterable, appointments: Iterable, today: date) -> list[OverdueEntry]:
    """
    One OverdueEntry per overdue, unscheduled patient, most overdue first.
    Equal `days_overdue` values are ordered by full name (case-insensitive),
    then patient id. `records` must have their `patient` relationship loaded.
    """
    scheduled = {
        a.patient_id for a in appointments
        if a.status == AppointmentStatus.SCHEDULED.value
    }

    by_patient: dict[str, list] = defaultdict(list)
    for record in records:
        by_patient[record.patient_id].append(record)

    entries = []
    for patient_id, patient_records in by_patient.items():
        if patient_id in scheduled:
            continue
        governing = governing_record(patient_records, today)
        if governing is None:
            continue

        patient = governing.patient
        days_overdue = (today - governing.return_deadline_date).days
        entries.append(
            OverdueEntry(
                patient_id=patient_id,
                full_name=patient.full_name,
                cns=patient.cns,
                phone=patient.phone,
                address=patient.address,
                territory=patient.territory,
                return_deadline_date=governing.return_deadline_date,
                days_overdue=days_overdue,
                severity=classify_severity(days_overdue),
                last_diagnosis=_last_diagnosis(patient_records),
            )
        )

    entries.sort(key=lambda e: (-e.days_overdue, e.full_name.casefold(), e.patient_id))
    return entries


class OverdueService:
    async def list_overdue(self, db: AsyncSession, today: date) -> list[OverdueEntry]:
        # Patients with no dated record can never be overdue, but their newest
        # diagnosis may sit on an undated record, so load all records of
        # patients that have at least one deadline.
        dated_patients = (
            select(MedicalRecord.patient_id)
            .where(MedicalRecord.return_deadline_date.is_not(None))
            .distinct()
        )
        result = await db.execute(
            select(MedicalRecord)
            .where(MedicalRecord.patient_id.in_(dated_patients))
            .options(selectinload(MedicalRecord.patient))
        )
        records = result.scalars().all()

        result = await db.execute(
            select(Appointment).where(Appointment.status == AppointmentStatus.SCHEDULED.value)
        )
        appointments = result.scalars().all()

        entries = derive_overdue(records, appointments, today)
        logger.debug(
            "overdue.derived",
            records=len(records),
            scheduled=len(appointments),
            overdue=len(entries),
            today=today.isoformat(),
        )
        return entries

    async def count_overdue(self, db: AsyncSession, today: date) -> int:
        return len(await self.list_overdue(db, today))

    async def count_scheduled(self, db: AsyncSession) -> int:
        return await db.scalar(
            select(func.count(Appointment.id)).where(
                Appointment.status == AppointmentStatus.SCHEDULED.value
            )
        ) or 0


overdue_service = OverdueService()
