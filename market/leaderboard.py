from __future__ import annotations
from typing import Any, Dict, List
from shared.kv import KVStore
from .users import reduced_projection

USER_PREFIX = "user:"


def top_users(store: KVStore, n: int = 10) -> List[Dict[str, Any]]:
    users = store.get_by_prefix(USER_PREFIX)
    # ties go to the lower id so the order is stable across scans
    users.sort(key=lambda u: (-(u.get("ecoPoints") or 0), str(u.get("id") or "")))
    return [reduced_projection(u) for u in users[:max(0, n)]]
