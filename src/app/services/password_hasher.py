"""
Credential Hasher

bcrypt hashing, fail-closed verification and password strength rules.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

import bcrypt

logger = logging.getLogger(__name__)

MIN_BCRYPT_ROUNDS = 12
# bcrypt only reads this many bytes of input
MAX_PASSWORD_BYTES = 72
SPECIAL_CHARACTERS = r"""!@#$%^&*(),.?":{}|<>"""
_SPECIAL_RE = re.compile("[" + re.escape(SPECIAL_CHARACTERS) + "]")


@dataclass
class PasswordStrength:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    score: int = 0


class PasswordHasher:
    """
    One-way password hashing with a fixed cost factor.

    Business Rules:
    - Cost factor below 12 is rejected at construction
    - verify() and verify_dummy() never raise: malformed hashes, over-long
      input or bcrypt errors return False
    - verify_dummy() burns the same bcrypt cost for unknown accounts so that
      "no such user" and "wrong password" take comparable time
    """

    def __init__(
        self,
        rounds: int = MIN_BCRYPT_ROUNDS,
        min_length: int = 8,
        require_special: bool = True,
    ):
        if rounds < MIN_BCRYPT_ROUNDS:
            raise ValueError(f"bcrypt rounds must be >= {MIN_BCRYPT_ROUNDS}, got {rounds}")
        self.rounds = rounds
        self.min_length = min_length
        self.require_special = require_special
        self._dummy_hash: Optional[bytes] = None

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(self.rounds)).decode()

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode(), password_hash.encode())
        except (ValueError, TypeError) as exc:
            logger.warning(f"Password verification failed closed: {type(exc).__name__}")
            return False

    def verify_dummy(self, password: str) -> bool:
        """Equal-cost comparison against a throwaway hash; always False"""
        if self._dummy_hash is None:
            self._dummy_hash = bcrypt.hashpw(b"dummy-password", bcrypt.gensalt(self.rounds))
        try:
            bcrypt.checkpw(password.encode(), self._dummy_hash)
        except (ValueError, TypeError) as exc:
            logger.warning(f"Password verification failed closed: {type(exc).__name__}")
        return False

    def validate_strength(self, password: str) -> PasswordStrength:
        """
        Check a candidate password against the policy.

        Returns every violated rule so the caller can show actionable
        feedback, plus a 0-5 score (one point per satisfied rule).
        """
        errors = []
        score = 0

        if len(password) >= self.min_length:
            score += 1
        else:
            errors.append(f"Password must be at least {self.min_length} characters long")

        if len(password.encode()) > MAX_PASSWORD_BYTES:
            errors.append(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")

        if re.search(r"[A-Z]", password):
            score += 1
        else:
            errors.append("Password must contain at least one uppercase letter")

        if re.search(r"[a-z]", password):
            score += 1
        else:
            errors.append("Password must contain at least one lowercase letter")

        if re.search(r"\d", password):
            score += 1
        else:
            errors.append("Password must contain at least one number")

        if _SPECIAL_RE.search(password):
            score += 1
        elif self.require_special:
            errors.append("Password must contain at least one special character")

        return PasswordStrength(is_valid=not errors, errors=errors, score=score)
