"""
Two-Factor Config

Tagged variants of the two-factor state embedded in the user record.
"""

from datetime import UTC, datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from src.domain.errors import TwoFactorConfigError
from .enums import TwoFactorMethod, TwoFactorStatus


class TwoFactorDisabled(BaseModel):
    status: Literal["disabled"] = TwoFactorStatus.disabled.value


class TwoFactorPendingSetup(BaseModel):
    """Secret generated but never verified; must not be honored at login"""

    status: Literal["pending_setup"] = TwoFactorStatus.pending_setup.value
    method: TwoFactorMethod = TwoFactorMethod.totp
    secret: str
    backup_codes: List[str]
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class TwoFactorEnabled(BaseModel):
    status: Literal["enabled"] = TwoFactorStatus.enabled.value
    method: TwoFactorMethod = TwoFactorMethod.totp
    secret: str
    backup_codes: List[str]
    setup_completed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    last_used_at: Optional[datetime] = None


class TwoFactorTemporarilyDisabled(BaseModel):
    """Enrollment kept but not enforced at login"""

    status: Literal["temporarily_disabled"] = (
        TwoFactorStatus.temporarily_disabled.value
    )
    method: TwoFactorMethod = TwoFactorMethod.totp
    secret: str
    backup_codes: List[str]
    setup_completed_at: Optional[datetime] = None


TwoFactorConfig = Annotated[
    Union[
        TwoFactorDisabled,
        TwoFactorPendingSetup,
        TwoFactorEnabled,
        TwoFactorTemporarilyDisabled,
    ],
    Field(discriminator="status"),
]

_config_adapter = TypeAdapter(TwoFactorConfig)


def parse_two_factor_config(raw: Optional[dict]) -> TwoFactorConfig:
    """
    Validate a stored two-factor blob into its typed variant.

    A missing blob means two-factor was never configured. Anything that does
    not validate raises TwoFactorConfigError so a corrupt record surfaces as
    one server error at the store boundary.
    """
    if not raw:
        return TwoFactorDisabled()
    try:
        return _config_adapter.validate_python(raw)
    except ValidationError as exc:
        raise TwoFactorConfigError("Stored two-factor configuration is invalid") from exc


def dump_two_factor_config(config: TwoFactorConfig) -> dict:
    return config.model_dump(mode="json")
