"""
Two-Factor Use Cases

TOTP enrollment, verification and removal.
"""

from .setup_two_factor_use_case import SetupTwoFactorUseCase
from .verify_two_factor_use_case import VerifyTwoFactorUseCase, TwoFactorAction
from .disable_two_factor_use_case import DisableTwoFactorUseCase
from .dtos import TwoFactorDisableResponse, TwoFactorSetupResponse, TwoFactorVerifyResponse

__all__ = [
    "SetupTwoFactorUseCase",
    "VerifyTwoFactorUseCase",
    "DisableTwoFactorUseCase",
    "TwoFactorAction",
    "TwoFactorSetupResponse",
    "TwoFactorVerifyResponse",
    "TwoFactorDisableResponse",
]
