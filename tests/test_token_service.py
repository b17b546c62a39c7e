from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app.application.services.token_service import SessionTokenIssuer
from app.exceptions import InvalidTokenError

TEST_SECRET = "test-signing-secret-0123456789abcdef"


def _real_now() -> datetime:
    return datetime.now(timezone.utc)


def test_mint_and_validate_round_trip(tokens):
    token = tokens.mint("user-1", "device-1", timedelta(hours=24))
    claims = tokens.validate(token)
    assert claims.user_id == "user-1"
    assert claims.device_id == "device-1"


def test_claims_are_flat_sub_device_exp(tokens):
    token = tokens.mint("user-1", "device-1", timedelta(minutes=10))
    payload = jwt.decode(token, TEST_SECRET, algorithms=["HS256"])
    assert set(payload) == {"sub", "device", "exp"}
    assert isinstance(payload["exp"], int)


def test_expired_token_is_rejected():
    minted_in_the_past = SessionTokenIssuer(secret=TEST_SECRET, clock=lambda: _real_now() - timedelta(hours=2))
    token = minted_in_the_past.mint("user-1", "device-1", timedelta(hours=1))
    with pytest.raises(InvalidTokenError) as exc:
        SessionTokenIssuer(secret=TEST_SECRET).validate(token)
    assert exc.value.status_code == 401


def test_token_valid_until_ttl_elapses():
    # Minted 50 minutes ago with a one hour ttl: still inside its window
    issuer = SessionTokenIssuer(secret=TEST_SECRET, clock=lambda: _real_now() - timedelta(minutes=50))
    token = issuer.mint("user-1", "device-1", timedelta(hours=1))
    assert SessionTokenIssuer(secret=TEST_SECRET).validate(token).device_id == "device-1"


def test_wrong_secret_is_rejected(tokens):
    token = SessionTokenIssuer(secret="another-secret-entirely-0123456789").mint("u", "d", timedelta(hours=1))
    with pytest.raises(InvalidTokenError):
        tokens.validate(token)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_token_is_rejected(tokens, token):
    with pytest.raises(InvalidTokenError):
        tokens.validate(token)


def test_missing_device_claim_is_rejected(tokens):
    exp = int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())
    token = jwt.encode({"sub": "user-1", "exp": exp}, TEST_SECRET, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        tokens.validate(token)


def test_unsigned_token_is_rejected(tokens):
    exp = int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())
    token = jwt.encode({"sub": "user-1", "device": "d", "exp": exp}, key=None, algorithm="none")
    with pytest.raises(InvalidTokenError):
        tokens.validate(token)
