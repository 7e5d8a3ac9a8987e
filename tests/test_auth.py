import boto3
import pytest
from botocore.stub import Stubber

from shared.auth import CognitoIdentity, bearer_token
from shared.errors import ValidationError


@pytest.fixture
def cognito():
    client = boto3.client("cognito-idp", region_name="us-east-1")
    with Stubber(client) as stub:
        yield CognitoIdentity(client, "us-east-1_pool"), stub
        stub.assert_no_pending_responses()


@pytest.mark.parametrize("header,token", [
    ("Bearer abc.def", "abc.def"),
    ("Bearer   abc  ", "abc"),
    ("Bearer ", None),
    ("bearer abc", None),
    ("Basic abc", None),
    (None, None),
])
def test_bearer_token(header, token):
    assert bearer_token(header) == token


def test_resolve_caller(cognito):
    idp, stub = cognito
    stub.add_response(
        "get_user",
        {"Username": "alice@example.com", "UserAttributes": [
            {"Name": "sub", "Value": "u-1"},
            {"Name": "email", "Value": "alice@example.com"},
            {"Name": "name", "Value": "Alice"},
        ]},
        {"AccessToken": "good-token"},
    )
    user = idp.resolve_caller("good-token")
    assert (user.id, user.email, user.name) == ("u-1", "alice@example.com", "Alice")


def test_resolve_caller_fails_closed(cognito):
    idp, stub = cognito
    stub.add_client_error("get_user", service_error_code="NotAuthorizedException",
                          service_message="Invalid Access Token", http_status_code=400)
    assert idp.resolve_caller("expired") is None


def test_resolve_caller_without_token_skips_provider(cognito):
    idp, _ = cognito
    assert idp.resolve_caller(None) is None


def test_create_account_confirms_user(cognito):
    idp, stub = cognito
    stub.add_response(
        "admin_create_user",
        {"User": {"Username": "bob@example.com", "Attributes": [{"Name": "sub", "Value": "u-9"}]}},
        {
            "UserPoolId": "us-east-1_pool",
            "Username": "bob@example.com",
            "UserAttributes": [
                {"Name": "email", "Value": "bob@example.com"},
                {"Name": "email_verified", "Value": "true"},
                {"Name": "name", "Value": "Bob"},
            ],
            "MessageAction": "SUPPRESS",
        },
    )
    stub.add_response(
        "admin_set_user_password",
        {},
        {"UserPoolId": "us-east-1_pool", "Username": "bob@example.com",
         "Password": "s3cret-pass", "Permanent": True},
    )
    user = idp.create_account("bob@example.com", "s3cret-pass", "Bob")
    assert user.id == "u-9"
    assert user.name == "Bob"


def test_create_account_surfaces_provider_message(cognito):
    idp, stub = cognito
    stub.add_client_error("admin_create_user", service_error_code="UsernameExistsException",
                          service_message="An account with the given email already exists.",
                          http_status_code=400)
    with pytest.raises(ValidationError, match="already exists"):
        idp.create_account("bob@example.com", "s3cret-pass", "Bob")
