from datetime import datetime, timedelta, timezone

import jwt
import pytest

from terramail.errors import Unauthorized
from terramail.models import User
from terramail.services import tokens


def _user():
    return User(id="u-1", email="a@example.com", role="admin")


def test_issue_and_decode():
    payload = tokens.decode_token(tokens.issue_token(_user()))
    assert payload["sub"] == "u-1"
    assert payload["role"] == "admin"


def test_expired_token():
    issued = datetime.now(timezone.utc) - timedelta(
        minutes=tokens.settings.jwt_exp_minutes + 1
    )
    token = tokens.issue_token(_user(), now=issued)
    with pytest.raises(Unauthorized, match="Expired token"):
        tokens.decode_token(token)


def test_foreign_signature_rejected():
    token = jwt.encode(
        {"sub": "u-1", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "some-other-secret",
        algorithm="HS256",
    )
    with pytest.raises(Unauthorized, match="Invalid token"):
        tokens.decode_token(token)


def test_missing_subject_rejected():
    token = jwt.encode(
        {"exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        tokens.settings.jwt_secret,
        algorithm=tokens.settings.jwt_algorithm,
    )
    with pytest.raises(Unauthorized):
        tokens.decode_token(token)
