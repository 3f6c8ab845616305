from app.models.admin_role import AdminRole
from app.models.impersonation_token import ImpersonationToken
from app.models.moderation_action import ModerationAction, ModerationActionType
from app.models.subscriber import Subscriber
from app.models.onboarding_progress import OnboardingProgress
from app.models.profile import Profile
from app.models.chatbot import Chatbot
from app.models.knowledge_base import KnowledgeBase

__all__ = [
    "AdminRole",
    "ImpersonationToken",
    "ModerationAction",
    "ModerationActionType",
    "Subscriber",
    "OnboardingProgress",
    "Profile",
    "Chatbot",
    "KnowledgeBase",
]
