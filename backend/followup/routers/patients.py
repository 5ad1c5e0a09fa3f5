from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from followup.database import get_db
from followup.exceptions import NotFoundError
from followup.schemas.patient import PatientCreate, PatientUpdate, PatientResponse, PatientListResponse
from followup.auth import get_current_user, UserPrincipal
from followup.services.patient_service import patient_service

router = APIRouter()


@router.get("", response_model=PatientListResponse)
async def list_patients(
    search: str = Query("", description="Search by name or CNS"),
    territory: Optional[str] = Query(None, description="Only patients of this territory"),
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    patients, total = await patient_service.search(db, search, territory)
    return PatientListResponse(
        patients=[PatientResponse.model_validate(p) for p in patients],
        total=total,
    )


@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    try:
        return PatientResponse.model_validate(await patient_service.get(db, patient_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=PatientResponse, status_code=201)
async def create_patient(
    data: PatientCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    return PatientResponse.model_validate(await patient_service.create(db, data))


@router.put("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: str,
    data: PatientUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    try:
        return PatientResponse.model_validate(await patient_service.update(db, patient_id, data))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
