from __future__ import annotations
import boto3
from botocore.config import Config
from .config import settings

_ddb = None
_cognito = None

def _client_config() -> Config:
    return Config(
        region_name=settings.aws_region,
        retries={"max_attempts": 1, "mode": "standard"},
    )

def dynamodb_resource():
    global _ddb
    if _ddb is None:
        _ddb = boto3.resource("dynamodb", config=_client_config())
    return _ddb

def cognito_client():
    global _cognito
    if _cognito is None:
        _cognito = boto3.client("cognito-idp", config=_client_config())
    return _cognito
