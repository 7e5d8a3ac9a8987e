from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional
from shared.errors import ValidationError
from shared.kv import KVStore
from shared.models import ChatMessage, UserIdentity, message_key, new_id
from .users import require_caller

logger = logging.getLogger(__name__)

MESSAGE_PREFIX = "message:"


def send_message(
    store: KVStore,
    caller: Optional[UserIdentity],
    recipient_id: Optional[str],
    text: Optional[str],
    product_id: Optional[str] = None,
) -> Dict[str, Any]:
    caller = require_caller(caller)
    if not recipient_id:
        raise ValidationError("recipientId is required")
    if not text or not text.strip():
        raise ValidationError("message is required")

    msg = ChatMessage(
        id=new_id(),
        sender_id=caller.id,
        recipient_id=recipient_id,
        message=text,
        product_id=product_id or None,
    )
    item = msg.to_item()
    store.set(message_key(msg.id), item)
    logger.debug("Message %s from %s to %s", msg.id, caller.id, recipient_id)
    return item


def list_conversation(
    store: KVStore,
    caller: Optional[UserIdentity],
    other_user_id: str,
) -> List[Dict[str, Any]]:
    caller = require_caller(caller)
    pair = {(caller.id, other_user_id), (other_user_id, caller.id)}
    msgs = [
        m for m in store.get_by_prefix(MESSAGE_PREFIX)
        if (m.get("senderId"), m.get("recipientId")) in pair
    ]
    msgs.sort(key=lambda m: (m.get("timestamp") or "", m.get("id") or ""))
    return msgs
