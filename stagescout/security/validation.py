import html
import re
from typing import Any, Dict

from stagescout.config import settings

USERNAME_PATTERN = re.compile(r'^[a-z0-9_]+$')
USERNAME_MIN_LENGTH = 3
PASSWORD_MIN_LENGTH = 6


def validate_message(content: str) -> Dict[str, Any]:
    """Validate chat message text and return validation result"""
    errors = []

    if len(content) > settings.MAX_MESSAGE_LENGTH:
        errors.append(f"Message too long. Maximum {settings.MAX_MESSAGE_LENGTH} characters allowed.")

    if not content.strip():
        errors.append("Message content cannot be empty.")

    if contains_malicious_content(content):
        errors.append("Message contains potentially malicious content.")

    return {
        "is_valid": len(errors) == 0,
        "errors": errors,
        "sanitized_content": sanitize_input(content)
    }


def sanitize_input(text: str) -> str:
    """Escape HTML and normalise whitespace in user supplied text"""
    if not text:
        return text

    sanitized = html.escape(text, quote=False)
    sanitized = re.sub(r'[ \t]+', ' ', sanitized).strip()
    return sanitized


def contains_malicious_content(content: str) -> bool:
    """Check if content contains potentially malicious patterns"""
    malicious_patterns = [
        r'<script[^>]*>.*?</script>',  # Script tags
        r'javascript:',  # JavaScript URLs
        r'data:text/html',  # Data URLs
        r'vbscript:',  # VBScript URLs
        r'<iframe[^>]*>',  # Iframe tags
        r'<object[^>]*>',  # Object tags
        r'<embed[^>]*>',  # Embed tags
    ]

    for pattern in malicious_patterns:
        if re.search(pattern, content, re.IGNORECASE | re.DOTALL):
            return True

    return False


def contains_malicious_file_content(file_data: bytes) -> bool:
    """Check for executable signatures at the start of an upload"""
    executable_signatures = [
        b'MZ',  # PE executable
        b'\x7fELF',  # ELF executable
        b'\xfe\xed\xfa',  # Mach-O executable
        b'#!/',  # Shell script
    ]
    return any(file_data.startswith(signature) for signature in executable_signatures)


def is_safe_filename(filename: str) -> bool:
    """Check if filename is safe"""
    if not filename or len(filename) > 255:
        return False

    dangerous_chars = ['..', '/', '\\', ':', '*', '?', '"', '<', '>', '|']
    return not any(char in filename for char in dangerous_chars)


def validate_username(username: str) -> Dict[str, Any]:
    """Usernames are lowercase letters, numbers and underscores, min 3 chars"""
    errors = []

    if not username or len(username) < USERNAME_MIN_LENGTH:
        errors.append(f"Username must be at least {USERNAME_MIN_LENGTH} characters long.")
    elif not USERNAME_PATTERN.match(username):
        errors.append("Username can only contain lowercase letters, numbers, and underscores.")

    return {
        "is_valid": len(errors) == 0,
        "errors": errors
    }


def validate_password(password: str) -> Dict[str, Any]:
    errors = []

    if not password or len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long.")

    return {
        "is_valid": len(errors) == 0,
        "errors": errors
    }
