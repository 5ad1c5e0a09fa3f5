from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from followup.database import get_db
from followup.config import clinic_today
from followup.auth import get_current_user, UserPrincipal
from followup.exceptions import NotAuthenticatedError, NotFoundError, RecordOwnershipError
from followup.schemas.medical_record import (
    MedicalRecordCreate,
    MedicalRecordUpdate,
    MedicalRecordResponse,
    MedicalRecordListResponse,
)
from followup.services.record_service import record_service

router = APIRouter()


@router.get("", response_model=MedicalRecordListResponse)
async def list_records(
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    records = await record_service.list_records(db, clinic_today(), limit=limit)
    total = await record_service.count_records(db)
    return MedicalRecordListResponse(records=records, total=total)


@router.post("", response_model=MedicalRecordResponse, status_code=201)
async def create_record(
    data: MedicalRecordCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    try:
        return await record_service.create_record(db, data, current_user.profile, clinic_today())
    except NotAuthenticatedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{record_id}", response_model=MedicalRecordResponse)
async def update_record(
    record_id: str,
    data: MedicalRecordUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    try:
        return await record_service.update_record(
            db, record_id, data, current_user.user_id, clinic_today()
        )
    except RecordOwnershipError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
