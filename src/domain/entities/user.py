"""
User Entity

The CRM user record consumed by the auth core.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, JSON, SQLModel

from .enums import UserRole


class User(SQLModel, table=True):
    """
    User entity - a CRM account that can authenticate.

    Business Rules:
    - Email must be unique across all users (stored lower-cased)
    - Password stored as bcrypt hash (cost factor >= 12)
    - two_factor_config holds the serialized two-factor state; it is parsed
      into a typed variant by the user store, never read raw by use cases
    - two_factor_enabled mirrors two_factor_config.status == enabled
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    role: UserRole = Field(default=UserRole.agent)
    organization_id: str = Field(index=True, max_length=64)

    is_active: bool = Field(default=True)
    is_onboarding_completed: bool = Field(default=False)

    two_factor_enabled: bool = Field(default=False)
    two_factor_config: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    # Timestamps
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    last_login_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
