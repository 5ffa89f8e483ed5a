"""Password strength policy.

A password must have at least eight characters and mix upper and lower
case letters, digits and special characters.
"""

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class PasswordPolicyViolation:
    """A single failed password rule.

    Attributes:
        message: Human-readable error message.
        code: Machine-readable error code.
    """

    message: str
    code: str


class PasswordValidator:
    """Checks passwords against the account password policy."""

    SPECIAL_CHARS = r"!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>\/?`~"

    def __init__(self, min_length: int = 8, max_length: int = 128) -> None:
        self.min_length = min_length
        self.max_length = max_length
        self._character_rules = [
            (r"[a-z]", "Password must contain at least one lowercase letter", "password_no_lowercase"),
            (r"[A-Z]", "Password must contain at least one uppercase letter", "password_no_uppercase"),
            (r"\d", "Password must contain at least one digit", "password_no_digit"),
            (
                f"[{self.SPECIAL_CHARS}]",
                "Password must contain at least one special character",
                "password_no_special",
            ),
        ]

    def validate(self, password: str) -> list[PasswordPolicyViolation]:
        """Validate a password against the policy.

        Args:
            password: The password to validate.

        Returns:
            Every violated rule; empty when the password is acceptable.
        """
        violations: list[PasswordPolicyViolation] = []
        if len(password) < self.min_length:
            violations.append(
                PasswordPolicyViolation(
                    f"Password must be at least {self.min_length} characters",
                    "password_too_short",
                )
            )
        elif len(password) > self.max_length:
            violations.append(
                PasswordPolicyViolation(
                    f"Password must be at most {self.max_length} characters",
                    "password_too_long",
                )
            )

        for pattern, message, code in self._character_rules:
            if not re.search(pattern, password):
                violations.append(PasswordPolicyViolation(message, code))
        return violations

    def is_valid(self, password: str) -> bool:
        return not self.validate(password)


default_password_validator = PasswordValidator()
