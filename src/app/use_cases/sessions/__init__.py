"""
Session Management Use Cases

Activity pings, listing and single-session revocation for the caller.
"""

from .record_activity_use_case import RecordActivityUseCase
from .list_sessions_use_case import ListSessionsUseCase
from .revoke_session_use_case import RevokeSessionUseCase

__all__ = [
    "RecordActivityUseCase",
    "ListSessionsUseCase",
    "RevokeSessionUseCase",
]
