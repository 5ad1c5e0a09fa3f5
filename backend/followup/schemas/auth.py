from pydantic import BaseModel
from typing import Optional


class TokenRequest(BaseModel):
    user_id: str


class ProfileOut(BaseModel):
    user_id: str
    full_name: str

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    full_name: str
    role: Optional[str] = None
    permissions: list[str] = []


class MeResponse(BaseModel):
    user_id: str
    role: Optional[str] = None
    profile: Optional[ProfileOut] = None
    permissions: list[str] = []
    panels: list[str] = []
