from __future__ import annotations
import logging
from typing import Any, Dict, Optional
from shared.auth import IdentityProvider
from shared.errors import Unauthorized, ValidationError
from shared.kv import KVStore
from shared.models import UserIdentity, UserProfile, user_key

logger = logging.getLogger(__name__)


def require_caller(caller: Optional[UserIdentity]) -> UserIdentity:
    if caller is None:
        raise Unauthorized()
    return caller


def reduced_projection(user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": user.get("id"),
        "name": user.get("name"),
        "ecoPoints": user.get("ecoPoints") or 0,
        "badges": user.get("badges") or [],
    }


def signup(
    store: KVStore,
    identity: IdentityProvider,
    email: Optional[str],
    password: Optional[str],
    name: Optional[str],
) -> UserIdentity:
    email = (email or "").strip()
    name = (name or "").strip()
    if not email or not password or not name:
        raise ValidationError("email, password and name are required")

    user = identity.create_account(email, password, name)
    profile = UserProfile(id=user.id, email=email, name=name)
    store.set(user_key(user.id), profile.to_item())
    logger.info("Created account %s", user.id)
    return user


def get_profile(store: KVStore, caller: Optional[UserIdentity]) -> Optional[Dict[str, Any]]:
    caller = require_caller(caller)
    return store.get(user_key(caller.id))


def award_points(store: KVStore, user_id: str, points: int) -> Optional[Dict[str, Any]]:
    updated = store.incr(user_key(user_id), "ecoPoints", points)
    if updated is None:
        logger.warning("No profile for user %s; %d eco points not awarded", user_id, points)
    return updated
