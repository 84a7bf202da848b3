"""
Two-Factor Service

TOTP enrollment (secret, provisioning QR, backup codes) and verification
of TOTP or one-time backup codes.
"""

import base64
import hmac
import logging
import re
import secrets
from dataclasses import dataclass
from io import BytesIO
from typing import List, Optional

import pyotp
import qrcode

logger = logging.getLogger(__name__)

_TOTP_FORMAT = re.compile(r"^\d{6}$")
_BACKUP_FORMAT = re.compile(r"^[A-F0-9]{8}$")


@dataclass
class TwoFactorSetup:
    secret: str
    qr_code_url: str
    backup_codes: List[str]
    manual_entry_key: str


@dataclass
class TwoFactorValidation:
    is_valid: bool
    used_backup_code: Optional[str] = None
    error: Optional[str] = None


def _clean(code: str) -> str:
    return re.sub(r"\s", "", code or "").upper()


class TwoFactorService:
    """
    TOTP + backup code operations. Stateless; callers persist the results.

    Business Rules:
    - TOTP is tried first with +/- valid_window 30s steps, then backup codes
    - A call yields exactly one of: TOTP success, backup success, failure
    - Backup codes are compared case-insensitively in constant time and are
      one-time: callers must drop a used code via remove_used_backup_code
    """

    def __init__(self, issuer: str, backup_code_count: int = 10, valid_window: int = 1):
        self.issuer = issuer
        self.backup_code_count = backup_code_count
        self.valid_window = valid_window

    def generate_setup(self, email: str, user_id: str) -> TwoFactorSetup:
        """
        Begin enrollment for a user.

        Args:
            email: Account name shown in the authenticator app
            user_id: Owner of the secret, used for logging only

        Returns:
            TwoFactorSetup with secret, QR data URL, backup codes and the
            secret grouped for manual entry
        """
        secret = pyotp.random_base32()
        provisioning_uri = pyotp.TOTP(secret).provisioning_uri(
            name=email, issuer_name=self.issuer
        )
        logger.info(f"Generated two-factor setup for user {user_id}")
        return TwoFactorSetup(
            secret=secret,
            qr_code_url=self._render_qr(provisioning_uri),
            backup_codes=self.generate_backup_codes(),
            manual_entry_key=" ".join(secret[i:i + 4] for i in range(0, len(secret), 4)),
        )

    def verify_token(
        self, secret: str, code: str, backup_codes: Optional[List[str]] = None
    ) -> TwoFactorValidation:
        clean_code = _clean(code)
        if not clean_code:
            return TwoFactorValidation(is_valid=False, error="Verification code is required")

        if _TOTP_FORMAT.match(clean_code) and pyotp.TOTP(secret).verify(
            clean_code, valid_window=self.valid_window
        ):
            return TwoFactorValidation(is_valid=True)

        matched = None
        for candidate in backup_codes or []:
            # Walk the whole list so timing does not reveal the match position
            if hmac.compare_digest(candidate.upper().encode(), clean_code.encode()):
                matched = candidate
        if matched is not None:
            return TwoFactorValidation(is_valid=True, used_backup_code=matched)

        return TwoFactorValidation(is_valid=False, error="Invalid verification code")

    def generate_backup_codes(self, count: Optional[int] = None) -> List[str]:
        return [secrets.token_hex(4).upper() for _ in range(count or self.backup_code_count)]

    @staticmethod
    def remove_used_backup_code(backup_codes: List[str], used_code: str) -> List[str]:
        used = used_code.upper()
        return [code for code in backup_codes if code.upper() != used]

    @staticmethod
    def is_valid_totp_format(code: str) -> bool:
        return bool(_TOTP_FORMAT.match(_clean(code)))

    @staticmethod
    def is_valid_backup_code_format(code: str) -> bool:
        return bool(_BACKUP_FORMAT.match(_clean(code)))

    @staticmethod
    def _render_qr(data: str) -> str:
        qr = qrcode.QRCode(version=1, box_size=10, border=4)
        qr.add_data(data)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")

        buffer = BytesIO()
        img.save(buffer, format="PNG")
        return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode()
