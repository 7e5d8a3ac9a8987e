from __future__ import annotations
from typing import Any, Dict, List, Optional
from shared.kv import KVStore
from shared.models import UserIdentity, WishlistEntry, product_key, wishlist_key, wishlist_prefix
from .users import require_caller


def add(store: KVStore, caller: Optional[UserIdentity], product_id: str) -> None:
    caller = require_caller(caller)
    entry = WishlistEntry(user_id=caller.id, product_id=product_id)
    store.set(wishlist_key(caller.id, product_id), entry.to_item())


def remove(store: KVStore, caller: Optional[UserIdentity], product_id: str) -> None:
    caller = require_caller(caller)
    store.delete(wishlist_key(caller.id, product_id))


def list_products(store: KVStore, caller: Optional[UserIdentity]) -> List[Dict[str, Any]]:
    """Products on the caller's wishlist, oldest addition first.

    Entries whose product no longer exists are skipped.
    """
    caller = require_caller(caller)
    entries = sorted(
        store.get_by_prefix(wishlist_prefix(caller.id)),
        key=lambda e: (e.get("addedAt") or "", e.get("productId") or ""),
    )
    out: List[Dict[str, Any]] = []
    for e in entries:
        p = store.get(product_key(e.get("productId") or ""))
        if p:
            out.append(p)
    return out
