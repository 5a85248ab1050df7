from .auth import create_access_token, create_user_token, verify_token, get_password_hash, verify_password
from .validation import validate_message, validate_password, validate_username, sanitize_input

__all__ = [
    "create_access_token",
    "create_user_token",
    "verify_token",
    "get_password_hash",
    "verify_password",
    "validate_message",
    "validate_password",
    "validate_username",
    "sanitize_input",
]
