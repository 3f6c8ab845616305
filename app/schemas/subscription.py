from pydantic import BaseModel, Field
from typing import Optional


class TrialResponse(BaseModel):
    success: bool
    trial_end: str


class SubscriptionStatusResponse(BaseModel):
    subscribed: bool
    subscription_tier: Optional[str] = None
    subscription_end: Optional[str] = None
    is_trial: bool = False
    trial_end: Optional[str] = None


class CheckoutRequest(BaseModel):
    price_id: Optional[str] = Field(default=None, alias="priceId")


class CheckoutResponse(BaseModel):
    url: str
