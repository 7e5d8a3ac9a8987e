from __future__ import annotations
import os

os.environ.setdefault("KV_BACKEND", "memory")
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

import itertools
from typing import Dict, Optional

import pytest
from fastapi.testclient import TestClient

from shared.auth import IdentityProvider
from shared.errors import ValidationError
from shared.kv import MemoryStore
from shared.models import UserIdentity, UserProfile, user_key


class FakeIdentity(IdentityProvider):
    """Token -> identity table standing in for the user pool."""

    def __init__(self):
        self.tokens: Dict[str, UserIdentity] = {}
        self._ids = itertools.count(1)

    def register(self, user: UserIdentity, token: str) -> None:
        self.tokens[token] = user

    def resolve_caller(self, token: Optional[str]) -> Optional[UserIdentity]:
        return self.tokens.get(token or "")

    def create_account(self, email: str, password: str, name: str) -> UserIdentity:
        if any(u.email == email for u in self.tokens.values()):
            raise ValidationError("A user with this email address has already been registered")
        user = UserIdentity(id=f"user-{next(self._ids)}", email=email, name=name)
        self.tokens[f"token-{user.id}"] = user
        return user


@pytest.fixture
def store():
    return MemoryStore()

@pytest.fixture
def idp():
    return FakeIdentity()

def _make_user(store, idp, uid, name, points=0):
    user = UserIdentity(id=uid, email=f"{uid}@example.com", name=name)
    idp.register(user, f"tok-{uid}")
    store.set(user_key(uid), UserProfile(id=uid, email=user.email, name=name, eco_points=points).to_item())
    return user

@pytest.fixture
def alice(store, idp):
    return _make_user(store, idp, "alice", "Alice")

@pytest.fixture
def bob(store, idp):
    return _make_user(store, idp, "bob", "Bob")

@pytest.fixture
def make_user(store, idp):
    return lambda uid, name, points=0: _make_user(store, idp, uid, name, points)

@pytest.fixture
def auth():
    def _headers(user: UserIdentity) -> Dict[str, str]:
        return {"Authorization": f"Bearer tok-{user.id}"}
    return _headers

@pytest.fixture
def client(store, idp):
    from api.main import app, get_idp, get_kv

    app.dependency_overrides[get_kv] = lambda: store
    app.dependency_overrides[get_idp] = lambda: idp
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
