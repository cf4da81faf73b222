"""
Tests for token issue and verification
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from togo.errors import UnauthenticatedError
from togo.utils.jwt_utils import TokenService, parse_bearer


@pytest.fixture
def tokens():
    return TokenService("test-secret", ttl_hours=1)


def test_issue_then_authenticate(tokens):
    token = tokens.issue(42)

    assert tokens.authenticate(token) == 42
    assert jwt.decode(token, "test-secret", algorithms=["HS256"])["sub"] == "42"


def test_expired_token_rejected(tokens):
    token = tokens.issue(42, now=datetime.now(timezone.utc) - timedelta(hours=2))

    with pytest.raises(UnauthenticatedError) as exc_info:
        tokens.authenticate(token)
    assert exc_info.value.message == "invalid credentials"


def test_token_signed_with_other_key_rejected(tokens):
    token = TokenService("another-secret").issue(42)

    with pytest.raises(UnauthenticatedError):
        tokens.authenticate(token)


def test_token_without_subject_rejected(tokens):
    exp = int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())
    token = jwt.encode({"exp": exp}, "test-secret", algorithm="HS256")

    with pytest.raises(UnauthenticatedError):
        tokens.authenticate(token)


@pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
def test_missing_or_garbage_token_rejected(tokens, token):
    with pytest.raises(UnauthenticatedError):
        tokens.authenticate(token)


def test_authenticate_header(tokens):
    token = tokens.issue(7)

    assert tokens.authenticate_header(f"Bearer {token}") == 7


@pytest.mark.parametrize(
    "header, message",
    [
        (None, "bad header value given"),
        ("", "bad header value given"),
        ("Token abc", "invalid formatted authorization header"),
        ("Bearer", "invalid formatted authorization header"),
        ("Bearer a b", "invalid formatted authorization header"),
    ],
)
def test_parse_bearer_rejects_malformed_header(header, message):
    with pytest.raises(UnauthenticatedError) as exc_info:
        parse_bearer(header)
    assert exc_info.value.message == message


def test_empty_secret_rejected():
    with pytest.raises(ValueError):
        TokenService("")
