"""
Session Value Type

Server-tracked record of one authenticated device/login instance.
"""

from datetime import UTC, datetime
from typing import Optional

from pydantic import BaseModel, Field


class Session(BaseModel):
    """
    Session - one login on one device.

    Business Rules:
    - session_id is unique per login and doubles as the token jti
    - At most one entry per session_id (recording again overwrites)
    - last_activity_at moves forward on every verified request
    - The registry holds a weak reference only: user_id, never the User
    """

    session_id: str
    user_id: str
    device_id: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    last_activity_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class DeviceInfo(BaseModel):
    """Client details captured when a session is recorded"""

    device_id: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
