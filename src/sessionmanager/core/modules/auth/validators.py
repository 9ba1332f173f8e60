from uuid import UUID

from sessionmanager.errors import ValidationError

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
MAX_DEVICE_INFO_LENGTH = 500


def validate_login(username: str, password: str, device_info: str) -> None:
    """Validate login input before anything touches the directory or the store.

    Requirements:
    - Username of at least 3 non-blank characters
    - Password of at least 6 characters
    - Device label present, at most 500 characters

    Raises:
        ValidationError: If any requirement is not met
    """
    if not username.strip() or len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters")

    if not password.strip() or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    if not device_info.strip():
        raise ValidationError("Device name is required for session tracking")

    if len(device_info) > MAX_DEVICE_INFO_LENGTH:
        raise ValidationError(f"Device name cannot exceed {MAX_DEVICE_INFO_LENGTH} characters")


def validate_session_id(session_id: str) -> None:
    """Session IDs are UUID strings."""
    try:
        UUID(session_id)
    except ValueError as e:
        raise ValidationError("Session ID must be a valid UUID") from e
