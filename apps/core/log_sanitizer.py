"""
Log sanitization to prevent sensitive data leakage.

Automatically redacts sensitive information from logs including:
- Bearer tokens and JWTs
- Passwords and secrets
- Database URLs with credentials
"""
import re
import logging


class SanitizingFormatter(logging.Formatter):
    """
    Custom log formatter that sanitizes sensitive data.

    Redacts bearer tokens, JWTs, passwords, secrets, authorization
    headers and credentials embedded in connection URLs.
    """

    PATTERNS = [
        # Bearer tokens
        (re.compile(r'Bearer\s+([a-zA-Z0-9_\-\.]{20,})', re.IGNORECASE), r'Bearer [REDACTED]'),

        # JWT tokens (header.payload.signature format)
        (re.compile(r'eyJ[a-zA-Z0-9_\-]+\.eyJ[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+'), r'[REDACTED_JWT]'),

        # Passwords
        (re.compile(r'password["\s:=]+([^\s,\]}"\']+)', re.IGNORECASE), r'password=[REDACTED]'),
        (re.compile(r'passwd["\s:=]+([^\s,\]}"\']+)', re.IGNORECASE), r'passwd=[REDACTED]'),

        # Secrets
        (re.compile(r'secret[_-]?key["\s:=]+([^\s,\]}"\']{8,})', re.IGNORECASE), r'secret_key=[REDACTED]'),

        # Database URLs with passwords
        (re.compile(r'://([^:/\s]+):([^@\s]+)@'), r'://\1:[REDACTED]@'),

        # Generic tokens
        (re.compile(r'token["\s:=]+([a-zA-Z0-9_\-\.]{32,})', re.IGNORECASE), r'token=[REDACTED]'),

        # Authorization headers
        (re.compile(r'Authorization["\s:]+(?!Bearer \[REDACTED\])([^\s,\]}"\']+)', re.IGNORECASE), r'Authorization: [REDACTED]'),
    ]

    @classmethod
    def sanitize(cls, text):
        """Apply every redaction pattern to text."""
        for pattern, replacement in cls.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def format(self, record):
        """
        Format log record and sanitize sensitive data.

        Args:
            record: LogRecord instance

        Returns:
            Sanitized log message
        """
        return self.sanitize(super().format(record))


class SanitizingFilter(logging.Filter):
    """
    Logging filter that sanitizes sensitive data in log records.

    Sanitizes the message and string arguments before formatting.
    """

    def filter(self, record):
        """
        Sanitize log record message.

        Returns:
            True (always allows the record through)
        """
        if isinstance(record.msg, str):
            record.msg = SanitizingFormatter.sanitize(record.msg)

        if record.args and isinstance(record.args, tuple):
            record.args = tuple(
                SanitizingFormatter.sanitize(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )

        return True

