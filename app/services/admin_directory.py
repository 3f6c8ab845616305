"""
Admin dashboard listings: users, bots and knowledge bases with owner details.
User emails come from Supabase Auth, names from the profiles table.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.models.chatbot import Chatbot
from app.models.knowledge_base import KnowledgeBase
from app.models.profile import Profile
from app.services.identity_client import SupabaseIdentityClient
from app.utils.timestamps import to_iso, utcnow

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"


def _display_name(profile: Optional[Profile]) -> str:
    if not profile:
        return UNKNOWN
    name = f"{profile.first_name or ''} {profile.last_name or ''}".strip()
    return name or UNKNOWN


def _profiles_by_id(db: Session, user_ids: List[str]) -> Dict[str, Profile]:
    if not user_ids:
        return {}
    profiles = db.query(Profile).filter(Profile.id.in_(user_ids)).all()
    return {p.id: p for p in profiles}


def list_users(db: Session, identity: SupabaseIdentityClient) -> List[Dict[str, Any]]:
    auth_users = identity.list_users()
    profiles = _profiles_by_id(db, [u.id for u in auth_users])
    users = []
    for auth_user in auth_users:
        profile = profiles.get(auth_user.id)
        users.append({
            "id": auth_user.id,
            "email": auth_user.email,
            "first_name": (profile.first_name if profile else None) or "",
            "last_name": (profile.last_name if profile else None) or "",
            "company": (profile.company if profile else None) or "",
            "created_at": auth_user.created_at,
            "last_sign_in_at": auth_user.last_sign_in_at,
        })
    return users


def _owner_fields(user_id: str, emails: Dict[str, Optional[str]], profiles: Dict[str, Profile]) -> Dict[str, str]:
    return {
        "user_email": emails.get(user_id) or UNKNOWN,
        "user_name": _display_name(profiles.get(user_id)),
    }


def list_bots(db: Session, identity: SupabaseIdentityClient) -> List[Dict[str, Any]]:
    bots = db.query(Chatbot).order_by(Chatbot.created_at.desc()).all()
    emails = {u.id: u.email for u in identity.list_users()}
    profiles = _profiles_by_id(db, list({b.user_id for b in bots}))
    return [
        {
            "id": bot.id,
            "user_id": bot.user_id,
            "name": bot.name,
            "description": bot.description,
            "configuration": bot.configuration,
            "is_active": bot.is_active,
            "created_at": to_iso(bot.created_at),
            "updated_at": to_iso(bot.updated_at),
            **_owner_fields(bot.user_id, emails, profiles),
        }
        for bot in bots
    ]


def list_knowledge_bases(db: Session, identity: SupabaseIdentityClient) -> List[Dict[str, Any]]:
    kbs = db.query(KnowledgeBase).order_by(KnowledgeBase.created_at.desc()).all()
    emails = {u.id: u.email for u in identity.list_users()}
    profiles = _profiles_by_id(db, list({kb.user_id for kb in kbs}))
    bot_ids = [kb.chatbot_id for kb in kbs if kb.chatbot_id]
    bot_names = {}
    if bot_ids:
        bot_names = {b.id: b.name for b in db.query(Chatbot).filter(Chatbot.id.in_(bot_ids)).all()}
    return [
        {
            "id": kb.id,
            "user_id": kb.user_id,
            "chatbot_id": kb.chatbot_id,
            "title": kb.title,
            "file_type": kb.file_type,
            "file_size": kb.file_size,
            "created_at": to_iso(kb.created_at),
            "updated_at": to_iso(kb.updated_at),
            "bot_name": bot_names.get(kb.chatbot_id),
            **_owner_fields(kb.user_id, emails, profiles),
        }
        for kb in kbs
    ]


def set_bot_status(db: Session, bot_id: str, is_active: bool) -> Chatbot:
    bot = db.query(Chatbot).filter(Chatbot.id == bot_id).first()
    if not bot:
        raise NotFound("Bot not found")
    bot.is_active = is_active
    bot.updated_at = utcnow()
    db.commit()
    logger.info("[ADMIN] Bot %s is_active=%s", bot_id, is_active)
    return bot


def delete_bot(db: Session, bot_id: str) -> None:
    bot = db.query(Chatbot).filter(Chatbot.id == bot_id).first()
    if not bot:
        raise NotFound("Bot not found")
    # Knowledge bases outlive their bot
    db.query(KnowledgeBase).filter(KnowledgeBase.chatbot_id == bot_id).update(
        {"chatbot_id": None}, synchronize_session=False
    )
    db.delete(bot)
    db.commit()
    logger.info("[ADMIN] Bot %s deleted", bot_id)


def delete_knowledge_base(db: Session, kb_id: str) -> None:
    deleted = db.query(KnowledgeBase).filter(KnowledgeBase.id == kb_id).delete(synchronize_session=False)
    if not deleted:
        db.rollback()
        raise NotFound("Knowledge base not found")
    db.commit()
    logger.info("[ADMIN] Knowledge base %s deleted", kb_id)
