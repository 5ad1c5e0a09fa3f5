from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from followup.database import get_db
from followup.config import clinic_today
from followup.auth import require_panel, UserPrincipal
from followup.panels import Panel
from followup.schemas.overdue import OverdueListResponse
from followup.services.overdue_service import overdue_service

router = APIRouter()


@router.get("", response_model=OverdueListResponse)
async def list_overdue_patients(
    db: AsyncSession = Depends(get_db),
    current_user: UserPrincipal = Depends(require_panel(Panel.OVERDUE_LIST)),
):
    """Patients past their return date with no appointment scheduled, most overdue first."""
    today = clinic_today()
    entries = await overdue_service.list_overdue(db, today)
    return OverdueListResponse(patients=entries, total=len(entries), as_of=today)
