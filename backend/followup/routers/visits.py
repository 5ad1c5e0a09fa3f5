from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from followup.database import get_db
from followup.models.community_visit import CommunityVisit
from followup.models.patient import Patient
from followup.schemas.appointment import VisitCreate, VisitResponse
from followup.auth import get_current_user, UserPrincipal

router = APIRouter()


@router.post("", response_model=VisitResponse, status_code=201)
async def record_visit(
    data: VisitCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(get_current_user),
):
    """Record a home visit performed by the calling community agent."""
    if not await db.get(Patient, data.patient_id):
        raise HTTPException(status_code=404, detail=f"Patient {data.patient_id} not found")

    visit = CommunityVisit(agent_id=current_user.user_id, **data.model_dump())
    db.add(visit)
    await db.flush()
    await db.refresh(visit)
    return VisitResponse.model_validate(visit)
