from datetime import date

import pytest
from sqlalchemy import select

from followup.exceptions import NotAuthenticatedError, NotFoundError, RecordOwnershipError
from followup.models import MedicalRecord
from followup.schemas.auth import ProfileOut
from followup.schemas.medical_record import MedicalRecordCreate, MedicalRecordUpdate
from followup.services.record_service import can_edit_record, record_service

from factories import DOCTOR_ID, JAN_1, OTHER_DOCTOR_ID, make_patient, make_record

TODAY = date(2024, 2, 15)
AUTHOR = ProfileOut(user_id=DOCTOR_ID, full_name="Helena Duarte")


def test_only_author_can_edit():
    record = make_record(make_patient("p"), doctor_id=DOCTOR_ID)
    assert can_edit_record(record, DOCTOR_ID)
    assert not can_edit_record(record, OTHER_DOCTOR_ID)
    assert not can_edit_record(record, None)


async def test_create_record_sets_author_and_overdue_flag(db, add_rows):
    await add_rows(make_patient("p", "Maria Silva"))

    created = await record_service.create_record(
        db,
        MedicalRecordCreate(patient_id="p", diagnosis="Hipertensão", return_deadline_date=date(2024, 2, 1)),
        AUTHOR,
        TODAY,
    )
    await db.commit()

    assert created.doctor_id == DOCTOR_ID
    assert created.doctor_name == "Helena Duarte"
    assert created.patient_name == "Maria Silva"
    assert created.is_overdue is True
    assert await record_service.count_records(db) == 1


async def test_create_record_requires_profile(db, add_rows):
    await add_rows(make_patient("p"))
    with pytest.raises(NotAuthenticatedError):
        await record_service.create_record(db, MedicalRecordCreate(patient_id="p"), None, TODAY)


async def test_create_record_for_unknown_patient(db):
    with pytest.raises(NotFoundError):
        await record_service.create_record(db, MedicalRecordCreate(patient_id="missing"), AUTHOR, TODAY)


async def test_author_can_update_record(db, add_rows):
    patient = make_patient("p")
    record = make_record(patient, date(2024, 1, 1), diagnosis="Asma")
    await add_rows(patient, record)

    updated = await record_service.update_record(
        db, record.id, MedicalRecordUpdate(return_deadline_date=date(2024, 3, 1)), DOCTOR_ID, TODAY
    )

    assert updated.return_deadline_date == date(2024, 3, 1)
    assert updated.diagnosis == "Asma"
    assert updated.is_overdue is False


async def test_non_author_update_is_rejected_and_record_unchanged(db, add_rows, session_factory):
    patient = make_patient("p")
    record = make_record(patient, date(2024, 1, 1), diagnosis="Asma")
    await add_rows(patient, record)

    with pytest.raises(RecordOwnershipError):
        await record_service.update_record(
            db, record.id, MedicalRecordUpdate(diagnosis="Alterado"), OTHER_DOCTOR_ID, TODAY
        )
    await db.rollback()

    async with session_factory() as fresh:
        stored = await fresh.scalar(select(MedicalRecord).where(MedicalRecord.id == record.id))
    assert stored.diagnosis == "Asma"
    assert stored.return_deadline_date == date(2024, 1, 1)


async def test_update_unknown_record(db):
    with pytest.raises(NotFoundError):
        await record_service.update_record(db, "missing", MedicalRecordUpdate(), DOCTOR_ID, TODAY)


async def test_list_records_newest_first_with_author_name(db, add_rows, staff):
    patient = make_patient("p", "Maria Silva")
    older = make_record(patient, None, created_at=JAN_1)
    newer = make_record(patient, date(2024, 1, 1), created_at=JAN_1.replace(month=2))
    await add_rows(patient, older, newer)

    records = await record_service.list_records(db, TODAY)

    assert [r.id for r in records] == [newer.id, older.id]
    assert records[0].doctor_name == "Helena Duarte"
    assert records[0].patient_name == "Maria Silva"
    assert records[0].is_overdue is True
