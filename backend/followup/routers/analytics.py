from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import async_sessionmaker
from followup.database import get_session_factory
from followup.config import clinic_today
from followup.auth import require_panel, UserPrincipal
from followup.panels import Panel
from followup.schemas.analytics import AnalyticsSummary
from followup.services.analytics_service import analytics_service, EFFECTIVENESS_WINDOW_DAYS

router = APIRouter()


@router.get("/director", response_model=AnalyticsSummary)
async def director_analytics(
    window_days: int = Query(EFFECTIVENESS_WINDOW_DAYS, ge=1, le=365),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    current_user: UserPrincipal = Depends(require_panel(Panel.DIRECTOR_ANALYTICS)),
):
    return await analytics_service.director_analytics(
        session_factory, clinic_today(), window_days=window_days
    )
