"""Tests for login input validation."""

import pytest

from sessionmanager.core.modules.auth.validators import validate_login, validate_session_id
from sessionmanager.errors import ValidationError


class TestValidateLogin:
    def test_valid_input(self):
        validate_login("alice", "secret123", "Chrome on Linux")

    @pytest.mark.parametrize("username", ["", "ab", "   "])
    def test_short_or_blank_username(self, username):
        with pytest.raises(ValidationError, match="Username"):
            validate_login(username, "secret123", "laptop")

    @pytest.mark.parametrize("password", ["", "12345", "      "])
    def test_short_or_blank_password(self, password):
        with pytest.raises(ValidationError, match="Password"):
            validate_login("alice", password, "laptop")

    @pytest.mark.parametrize("device", ["", "   "])
    def test_blank_device(self, device):
        with pytest.raises(ValidationError, match="Device name is required"):
            validate_login("alice", "secret123", device)

    def test_device_length_limit(self):
        validate_login("alice", "secret123", "d" * 500)

        with pytest.raises(ValidationError, match="cannot exceed 500"):
            validate_login("alice", "secret123", "d" * 501)


class TestValidateSessionId:
    def test_uuid_accepted(self):
        validate_session_id("12345678-1234-5678-1234-567812345678")

    def test_non_uuid_rejected(self):
        with pytest.raises(ValidationError):
            validate_session_id("session-1")
