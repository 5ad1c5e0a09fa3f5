from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from followup.database import get_db
from followup.models.appointment import Appointment
from followup.models.patient import Patient
from followup.schemas.appointment import AppointmentCreate, AppointmentStatusUpdate, AppointmentResponse
from followup.auth import get_current_user, UserPrincipal

router = APIRouter()


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    if not await db.get(Patient, data.patient_id):
        raise HTTPException(status_code=404, detail=f"Patient {data.patient_id} not found")

    appointment = Appointment(**data.model_dump())
    db.add(appointment)
    await db.flush()
    await db.refresh(appointment)
    return AppointmentResponse.model_validate(appointment)


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: str,
    data: AppointmentStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    appointment = await db.get(Appointment, appointment_id)
    if not appointment:
        raise HTTPException(status_code=404, detail=f"Appointment {appointment_id} not found")

    appointment.status = data.status
    await db.flush()
    await db.refresh(appointment)
    return AppointmentResponse.model_validate(appointment)
