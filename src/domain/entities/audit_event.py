"""
AuditEvent Entity

Immutable log of all authentication/security events.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel

from .enums import AuditEventType, AuditOutcome


class AuditEvent(SQLModel, table=True):
    """
    AuditEvent entity - append-only record of a security event.

    Business Rules:
    - Immutable (never updated or deleted)
    - user_id/email are best-effort: failure paths may only know the email
    - organization_id scopes the admin listing
    - details carries structured context (reason, session id, counts)
    """

    __tablename__ = "audit_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    event_type: AuditEventType = Field(max_length=50)
    outcome: AuditOutcome = Field(default=AuditOutcome.success)

    user_id: Optional[UUID] = Field(default=None, index=True)
    email: Optional[str] = Field(default=None, max_length=255)
    organization_id: Optional[str] = Field(default=None, max_length=64)

    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    request_path: Optional[str] = Field(default=None, max_length=255)
    correlation_id: Optional[str] = Field(default=None, max_length=64)

    details: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    # Timestamps
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )

    __table_args__ = (
        Index("idx_audit_created_at", "created_at"),
        Index("idx_audit_org_type", "organization_id", "event_type"),
    )
