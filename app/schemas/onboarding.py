from pydantic import BaseModel, ConfigDict, Field
from typing import Any, ClassVar, Dict, List, Optional


class StepCompleteRequest(BaseModel):
    step_data: Optional[Dict[str, Any]] = None


class OnboardingStepResponse(BaseModel):
    step_id: int
    completed_at: Optional[str] = None
    step_data: Optional[Dict[str, Any]] = None


class OnboardingProgressResponse(BaseModel):
    progress: List[OnboardingStepResponse]
    last_completed_step: int
    next_step: int


# step_data payloads, one model per onboarding step.
# The frontend sends camelCase keys; stored data uses the field names.

class StepData(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid", strict=True)

    kind: ClassVar[str] = "raw"


class PlanStepData(StepData):
    kind: ClassVar[str] = "plan"

    plan: Optional[str] = None
    price_id: Optional[str] = Field(default=None, alias="priceId")
    is_trial: bool = Field(default=False, alias="isTrial")


class KnowledgeBaseStepData(StepData):
    kind: ClassVar[str] = "knowledge_base"

    name: Optional[str] = None
    description: Optional[str] = None
    file_count: int = Field(default=0, alias="fileCount")


class BotSetupStepData(StepData):
    kind: ClassVar[str] = "bot_setup"

    name: Optional[str] = None
    description: Optional[str] = None
    personality: Optional[str] = None
    primary_color: Optional[str] = Field(default=None, alias="primaryColor")
    welcome_message: Optional[str] = Field(default=None, alias="welcomeMessage")


class IntegrationsStepData(StepData):
    kind: ClassVar[str] = "integrations"

    integrations: List[str] = []
    website_url: Optional[str] = Field(default=None, alias="websiteUrl")


class RawStepData(BaseModel):
    """Fallback for steps or payloads that don't match a known shape."""
    kind: ClassVar[str] = "raw"

    payload: Dict[str, Any] = {}
