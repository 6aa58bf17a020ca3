"""
Input validation utilities.

Shared checks for emails, passwords, entity names and ID lists used by
the services before anything is written.
"""
import re
from typing import Iterable, List, Optional

from apps.core.exceptions import InvalidArgument


class InputValidator:
    """
    Common input validation utilities.
    """

    EMAIL_PATTERN = re.compile(
        r'^[A-Za-z0-9._%+-]+@(?:[A-Za-z0-9-]+\.)+[A-Za-z]{2,24}$'
    )

    PASSWORD_MIN_LENGTH = 6
    NAME_MAX_LENGTH = 100

    @staticmethod
    def validate_email(email: Optional[str]) -> bool:
        """
        Validate email format.

        Args:
            email: Email address to validate

        Returns:
            bool: True if valid, False otherwise
        """
        if not email or not isinstance(email, str):
            return False
        return bool(InputValidator.EMAIL_PATTERN.match(email.strip()))

    @staticmethod
    def validate_password(password: Optional[str]) -> bool:
        """Password must be a string of at least PASSWORD_MIN_LENGTH characters."""
        if not isinstance(password, str):
            return False
        return len(password) >= InputValidator.PASSWORD_MIN_LENGTH

    @staticmethod
    def normalize_name(name: Optional[str], label: str = 'Name') -> str:
        """
        Trim and validate an entity name.

        Raises:
            InvalidArgument: If the name is blank or too long
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgument(f"{label} is required")
        name = name.strip()
        if len(name) > InputValidator.NAME_MAX_LENGTH:
            raise InvalidArgument(
                f"{label} must be at most {InputValidator.NAME_MAX_LENGTH} characters"
            )
        return name

    @staticmethod
    def normalize_ids(ids: Optional[Iterable]) -> List[int]:
        """
        Keep positive integer IDs, dropping duplicates while preserving order.

        Non-integer values raise InvalidArgument; None and non-positive
        values are ignored.
        """
        if ids is None:
            return []
        if isinstance(ids, (str, bytes)) or not hasattr(ids, '__iter__'):
            raise InvalidArgument("IDs must be provided as a list")

        normalized = []
        seen = set()
        for value in ids:
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidArgument(f"Invalid ID: {value!r}")
            if value <= 0 or value in seen:
                continue
            seen.add(value)
            normalized.append(value)
        return normalized
