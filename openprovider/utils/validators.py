"""
Input validation utilities for zone names and login credentials
"""

import re
from typing import Tuple

from openprovider.api.exceptions import ValidationError


class ZoneNameValidator:
    """Validator for DNS zone names"""

    # RFC-compliant domain regex (at least one dot, alphabetic TLD)
    DOMAIN_REGEX = re.compile(
        r'^(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,63}$'
    )

    @classmethod
    def validate(cls, name: str) -> str:
        """
        Validate a zone name.

        Args:
            name: Zone name to validate (e.g. 'example.com' or 'example.com.')

        Returns:
            Cleaned zone name (lowercase, stripped, no trailing dot)

        Raises:
            ValidationError: If the zone name is invalid
        """
        if not name or not name.strip():
            raise ValidationError("Zone name cannot be empty")

        name = name.strip().lower()

        # Accept fully qualified names
        if name.endswith('.'):
            name = name[:-1]

        if len(name) > 253:  # RFC 1035
            raise ValidationError("Zone name too long (max 253 characters)")

        if not cls.DOMAIN_REGEX.match(name):
            raise ValidationError(
                f"Invalid zone name: {name}. "
                "Zone names must contain only letters, numbers, hyphens and dots."
            )

        return name


class CredentialsValidator:
    """Validator for login credentials; the server stays authoritative"""

    @classmethod
    def validate(cls, username: str, password: str) -> Tuple[str, str]:
        """
        Check that username and password are non-empty strings.

        Raises:
            ValidationError: If either value is empty
        """
        if not isinstance(username, str) or not username.strip():
            raise ValidationError("Username cannot be empty")
        if not isinstance(password, str) or not password:
            raise ValidationError("Password cannot be empty")
        return username.strip(), password


def validate_zone_name(name: str) -> str:
    """Convenience function for zone name validation"""
    return ZoneNameValidator.validate(name)


def validate_credentials(username: str, password: str) -> Tuple[str, str]:
    """Convenience function for credential validation"""
    return CredentialsValidator.validate(username, password)
