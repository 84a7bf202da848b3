"""
Two-Factor Use Case DTOs
"""

from typing import List, Optional

from src.domain.base import CamelModel


class TwoFactorSetupResponse(CamelModel):
    """Enrollment material; the secret is shown once as the manual entry key"""

    qr_code_url: str
    manual_entry_key: str
    backup_codes: List[str]
    status: str


class TwoFactorVerifyResponse(CamelModel):
    status: str
    verified: bool = True
    used_backup_code: bool = False
    backup_codes_remaining: int
    warning: Optional[str] = None


class TwoFactorDisableResponse(CamelModel):
    status: str
