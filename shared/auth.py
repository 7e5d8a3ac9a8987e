from __future__ import annotations
import logging
from typing import Dict, List, Optional
from botocore.exceptions import BotoCoreError, ClientError
from .config import settings
from .errors import ValidationError
from .models import UserIdentity

logger = logging.getLogger(__name__)


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


def _attrs(pairs: List[Dict[str, str]]) -> Dict[str, str]:
    return {a["Name"]: a.get("Value", "") for a in pairs or []}


class IdentityProvider:
    def resolve_caller(self, token: Optional[str]) -> Optional[UserIdentity]:
        raise NotImplementedError

    def create_account(self, email: str, password: str, name: str) -> UserIdentity:
        raise NotImplementedError


class CognitoIdentity(IdentityProvider):
    """Amazon Cognito user pool as the external identity provider."""

    def __init__(self, client, user_pool_id: str):
        self._client = client
        self._pool_id = user_pool_id

    def resolve_caller(self, token: Optional[str]) -> Optional[UserIdentity]:
        if not token:
            return None
        try:
            r = self._client.get_user(AccessToken=token)
        except (ClientError, BotoCoreError) as e:
            logger.warning("Token verification failed: %s", e)
            return None
        a = _attrs(r.get("UserAttributes"))
        return UserIdentity(
            id=a.get("sub") or r["Username"],
            email=a.get("email", ""),
            name=a.get("name", ""),
        )

    def create_account(self, email: str, password: str, name: str) -> UserIdentity:
        try:
            r = self._client.admin_create_user(
                UserPoolId=self._pool_id,
                Username=email,
                UserAttributes=[
                    {"Name": "email", "Value": email},
                    {"Name": "email_verified", "Value": "true"},
                    {"Name": "name", "Value": name},
                ],
                MessageAction="SUPPRESS",
            )
            # no email server: set the real password as permanent so the account is confirmed
            self._client.admin_set_user_password(
                UserPoolId=self._pool_id,
                Username=email,
                Password=password,
                Permanent=True,
            )
        except ClientError as e:
            msg = e.response.get("Error", {}).get("Message") or "Signup failed"
            raise ValidationError(msg) from e
        a = _attrs(r["User"].get("Attributes"))
        return UserIdentity(id=a.get("sub") or r["User"]["Username"], email=email, name=name)


_identity: Optional[IdentityProvider] = None

def get_identity_provider() -> IdentityProvider:
    global _identity
    if _identity is None:
        from .aws import cognito_client
        _identity = CognitoIdentity(cognito_client(), settings.cognito_user_pool_id)
    return _identity
