from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class LoginAsUserRequest(BaseModel):
    target_user_id: Optional[str] = None


class LoginAsUserResponse(BaseModel):
    login_url: str


class ModerationRequest(BaseModel):
    action: str  # "ban" or "unban"
    target_user_id: Optional[str] = None
    reason: Optional[str] = None
    expires_at: Optional[datetime] = None  # Ban end; None means permanent


class MessageResponse(BaseModel):
    message: str


class ModerationActionResponse(BaseModel):
    id: str
    user_id: str
    admin_id: str
    action_type: str
    reason: Optional[str] = None
    expires_at: Optional[str] = None
    is_active: bool
    created_at: Optional[str] = None


class BotStatusUpdate(BaseModel):
    is_active: bool


class RedeemResponse(BaseModel):
    access_token: str
    refresh_token: str
    email: Optional[str] = None
    redirect_to: str
