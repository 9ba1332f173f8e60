"""Tests for bearer credential issuing and decoding."""

import time
from uuid import uuid4

import jwt
import pytest

from sessionmanager.core.modules.account.models import Account, Role
from sessionmanager.core.modules.token.service import ALGORITHM, TokenService
from sessionmanager.errors import AuthenticationError


@pytest.fixture
def tokens(config):
    return TokenService(config)


@pytest.fixture
def account():
    return Account(username="alice", password_cipher_text="x", password_iv="y", role=Role.ADMIN)


def encode(config, **overrides):
    now = int(time.time())
    payload = {
        "sub": str(uuid4()),
        "jti": str(uuid4()),
        "role": "User",
        "iss": config.jwt_issuer,
        "aud": config.jwt_audience,
        "iat": now,
        "exp": now + 60,
    }
    payload.update(overrides)
    return jwt.encode(payload, config.jwt_secret, algorithm=ALGORITHM)


class TestIssue:
    def test_claims_round_trip(self, tokens, account):
        session_id = str(uuid4())

        claims = tokens.decode(tokens.issue(account, session_id))

        assert claims.account_id == account.id
        assert claims.session_id == session_id
        assert claims.role == "Admin"
        assert claims.username == "alice"

    def test_payload_carries_issuer_audience_and_expiry(self, tokens, account, config):
        payload = jwt.decode(
            tokens.issue(account, "sid"), config.jwt_secret, algorithms=[ALGORITHM], audience=config.jwt_audience
        )

        assert payload["iss"] == "SessionManager"
        assert payload["aud"] == "SessionManagerClient"
        assert payload["exp"] - payload["iat"] == tokens.expires_in == 3600

    def test_refresh_secrets_are_unique(self, tokens):
        assert tokens.generate_refresh_secret() != tokens.generate_refresh_secret()


class TestDecode:
    """Tests for full and identifiers-only validation."""

    def test_expired_token_rejected(self, tokens, config):
        expired = encode(config, exp=int(time.time()) - 10)

        with pytest.raises(AuthenticationError, match="expired"):
            tokens.decode(expired)

    def test_identifiers_of_expired_token(self, tokens, config):
        """Test that identifiers can be read after expiry."""
        account_id, session_id = uuid4(), str(uuid4())
        expired = encode(config, sub=str(account_id), jti=session_id, exp=int(time.time()) - 10)

        claims = tokens.decode_identifiers(expired)

        assert claims.account_id == account_id
        assert claims.session_id == session_id

    @pytest.mark.parametrize(
        "overrides",
        [
            {"iss": "someone-else"},
            {"aud": "other-client"},
            {"sub": "not-a-uuid"},
        ],
    )
    def test_identifiers_still_verify_claims(self, tokens, config, overrides):
        with pytest.raises(AuthenticationError):
            tokens.decode_identifiers(encode(config, **overrides))

    def test_wrong_signature_rejected(self, tokens, config):
        forged = jwt.encode({"sub": str(uuid4()), "jti": "x", "exp": int(time.time()) + 60}, "another-secret-key-of-some-length")

        with pytest.raises(AuthenticationError, match="Invalid token"):
            tokens.decode_identifiers(forged)

    def test_missing_session_id_rejected(self, tokens, config):
        now = int(time.time())
        token = jwt.encode(
            {"sub": str(uuid4()), "iss": config.jwt_issuer, "aud": config.jwt_audience, "exp": now + 60},
            config.jwt_secret,
            algorithm=ALGORITHM,
        )

        with pytest.raises(AuthenticationError):
            tokens.decode(token)

    def test_garbage_rejected(self, tokens):
        with pytest.raises(AuthenticationError):
            tokens.decode("not.a.jwt")
