from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import async_sessionmaker
from followup.database import get_session_factory
from followup.config import clinic_today
from followup.auth import get_current_user, UserPrincipal
from followup.panels import role_greeting, sorted_panel_names
from followup.schemas.dashboard import DashboardResponse
from followup.services.dashboard_service import dashboard_service

router = APIRouter()


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    current_user: UserPrincipal = Depends(get_current_user),
):
    panels = current_user.panels
    stats = await dashboard_service.get_stats(session_factory, panels, clinic_today())
    return DashboardResponse(
        greeting=role_greeting(current_user.role, current_user.display_name),
        role=current_user.role.value if current_user.role else None,
        panels=sorted_panel_names(panels),
        stats=stats,
    )
