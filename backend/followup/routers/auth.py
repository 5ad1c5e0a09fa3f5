from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from followup.database import get_db
from followup.models.user import Profile, UserRole
from followup.auth import create_token, get_current_user, UserPrincipal
from followup.panels import sorted_panel_names
from followup.schemas.auth import TokenRequest, TokenResponse, MeResponse
from followup.services.identity_service import get_permissions

router = APIRouter()


@router.post("/token", response_model=TokenResponse)
async def get_token(body: TokenRequest, db: AsyncSession = Depends(get_db)):
    """
    Exchange a user id for a JWT. No password: demo token issuance only.
    Permissions are baked into the token; role is looked up per request.
    """
    user_id = body.user_id.strip()
    if not user_id:
        raise HTTPException(status_code=400, detail="user_id required")

    profile = await db.scalar(select(Profile).where(Profile.user_id == user_id))
    if not profile:
        raise HTTPException(status_code=404, detail=f"User '{user_id}' not found")

    permissions = await get_permissions(db, user_id)
    role = await db.scalar(select(UserRole.role).where(UserRole.user_id == user_id))
    return TokenResponse(
        access_token=create_token(user_id, permissions),
        user_id=user_id,
        full_name=profile.full_name,
        role=role,
        permissions=permissions,
    )


@router.get("/me", response_model=MeResponse)
async def me(current_user: UserPrincipal = Depends(get_current_user)):
    return MeResponse(
        user_id=current_user.user_id,
        role=current_user.role.value if current_user.role else None,
        profile=current_user.profile,
        permissions=current_user.permissions,
        panels=sorted_panel_names(current_user.panels),
    )
