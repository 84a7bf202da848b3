from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from src.app.services.session_registry import device_fingerprint
from src.app.use_cases.auth import (
    LogoutAllUseCase,
    LogoutUseCase,
    RefreshTokenUseCase,
    VerifySessionUseCase,
)
from src.app.use_cases.auth.dtos import identity_from_user
from src.app.use_cases.sessions import (
    ListSessionsUseCase,
    RecordActivityUseCase,
    RevokeSessionUseCase,
)
from src.domain.entities import AuditEventType, DeviceInfo, User, UserRole


@pytest.fixture
def user(mock_uow):
    user = User(
        id=uuid4(),
        email="agent@example.com",
        password_hash="unused",
        role=UserRole.agent,
        organization_id="org-1",
    )
    mock_uow.users.get_by_id.return_value = user
    return user


async def login(services, user, agent="pytest-agent"):
    device_id = device_fingerprint(agent, "10.0.0.1")
    tokens = services.tokens.issue_tokens(identity_from_user(user, device_id))
    await services.sessions.record_session(
        str(user.id), tokens.session_id, DeviceInfo(device_id=device_id, user_agent=agent)
    )
    return tokens


@pytest.mark.asyncio
async def test_verify_live_session(mock_uow, services, user):
    tokens = await login(services, user)

    result = await VerifySessionUseCase(mock_uow, services).execute(tokens.access_token)

    assert result.is_ok()
    caller = result.value
    assert caller.session_id == tokens.session_id
    assert caller.response.session.unverified is False
    assert caller.response.session.active_sessions == 1


@pytest.mark.asyncio
async def test_verify_unknown_session_is_flagged(mock_uow, services, user):
    tokens = services.tokens.issue_tokens(identity_from_user(user, "device-1"))

    result = await VerifySessionUseCase(mock_uow, services).execute(tokens.access_token)

    assert result.is_ok()
    assert result.value.response.session.unverified is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "token,code",
    [(None, "TOKEN_MISSING"), ("garbage", "TOKEN_INVALID")],
)
async def test_verify_rejects_bad_tokens(mock_uow, services, token, code):
    result = await VerifySessionUseCase(mock_uow, services).execute(token)

    assert result.is_err()
    assert result.error.code == code


@pytest.mark.asyncio
async def test_verify_rejects_refresh_token(mock_uow, services, user):
    tokens = await login(services, user)

    result = await VerifySessionUseCase(mock_uow, services).execute(tokens.refresh_token)

    assert result.error.code == "TOKEN_INVALID"


@pytest.mark.asyncio
async def test_verify_inactive_user(mock_uow, services, user):
    tokens = await login(services, user)
    user.is_active = False

    result = await VerifySessionUseCase(mock_uow, services).execute(tokens.access_token)

    assert result.error.code == "ACCOUNT_INACTIVE"


@pytest.mark.asyncio
async def test_logout_revokes_session(mock_uow, services, user, context):
    tokens = await login(services, user)

    result = await LogoutUseCase(mock_uow, services).execute(tokens.access_token, None, context)

    assert result.is_ok()
    assert result.value.session_id == tokens.session_id
    verify = await VerifySessionUseCase(mock_uow, services).execute(tokens.access_token)
    assert verify.error.code == "SESSION_REVOKED"


@pytest.mark.asyncio
async def test_logout_without_tokens_still_succeeds(mock_uow, services, context):
    result = await LogoutUseCase(mock_uow, services).execute(None, "not-a-token", context)

    assert result.is_ok()
    assert result.value.session_id is None
    event = mock_uow.audit_events.create.call_args.args[0]
    assert event.event_type == AuditEventType.logout
    assert event.user_id is None
    assert event.ip_address == context.ip_address
    assert event.details == {"reason": "no_verifiable_token"}


@pytest.mark.asyncio
async def test_logout_all_terminates_every_session(mock_uow, services, user, context):
    sessions = [await login(services, user, agent) for agent in ("a", "b", "c")]
    caller = services.tokens.verify_access(sessions[0].access_token)

    result = await LogoutAllUseCase(mock_uow, services).execute(caller, context)

    assert result.value.sessions_terminated == 3
    for tokens in sessions:
        verify = await VerifySessionUseCase(mock_uow, services).execute(tokens.access_token)
        assert verify.error.code == "SESSION_REVOKED"


@pytest.mark.asyncio
async def test_refresh_keeps_session_id(mock_uow, services, user, context):
    tokens = await login(services, user)

    result = await RefreshTokenUseCase(mock_uow, services).execute(tokens.refresh_token, context)

    assert result.is_ok()
    assert result.value.session_id == tokens.session_id
    payload = services.tokens.verify_access(result.value.access_token)
    assert payload.session_id == tokens.session_id


@pytest.mark.asyncio
async def test_refresh_revoked_session(mock_uow, services, user, context):
    tokens = await login(services, user)
    await services.sessions.revoke(tokens.session_id)

    result = await RefreshTokenUseCase(mock_uow, services).execute(tokens.refresh_token, context)

    assert result.error.code == "SESSION_REVOKED"


@pytest.mark.asyncio
async def test_refresh_re_records_unknown_session(mock_uow, services, user, context):
    tokens = services.tokens.issue_tokens(identity_from_user(user, "device-1"))

    result = await RefreshTokenUseCase(mock_uow, services).execute(tokens.refresh_token, context)

    assert result.is_ok()
    assert await services.sessions.get(tokens.session_id) is not None


@pytest.mark.asyncio
async def test_refresh_with_access_token_rejected(mock_uow, services, user, context):
    tokens = await login(services, user)

    result = await RefreshTokenUseCase(mock_uow, services).execute(tokens.access_token, context)

    assert result.error.code == "TOKEN_INVALID"


@pytest.mark.asyncio
async def test_list_marks_current_session(services, user):
    first = await login(services, user, "a")
    await login(services, user, "b")
    caller = services.tokens.verify_access(first.access_token)

    result = await ListSessionsUseCase(services).execute(caller)

    assert result.value.total == 2
    current = [view for view in result.value.sessions if view.current]
    assert [view.session_id for view in current] == [first.session_id]


@pytest.mark.asyncio
async def test_cannot_revoke_other_users_session(mock_uow, services, user, context):
    other = User(
        id=uuid4(),
        email="other@example.com",
        password_hash="unused",
        role=UserRole.agent,
        organization_id="org-1",
    )
    theirs = await login(services, other)
    mine = await login(services, user)
    caller = services.tokens.verify_access(mine.access_token)

    result = await RevokeSessionUseCase(mock_uow, services).execute(
        caller, theirs.session_id, context
    )

    assert result.error.code == "SESSION_NOT_FOUND"
    assert await services.sessions.get(theirs.session_id) is not None


@pytest.mark.asyncio
async def test_verify_moves_last_activity_forward(mock_uow, services, user):
    tokens = await login(services, user)
    stale = datetime.now(UTC) - timedelta(minutes=10)
    await services.sessions.repository.touch(tokens.session_id, stale)

    result = await VerifySessionUseCase(mock_uow, services).execute(tokens.access_token)

    session = await services.sessions.get(tokens.session_id)
    assert session.last_activity_at > stale
    assert result.value.response.session.last_activity_at == session.last_activity_at


@pytest.mark.asyncio
async def test_activity_does_not_resurrect_session_revoked_after_check(mock_uow, services, user):
    tokens = await login(services, user)
    caller = services.tokens.verify_access(tokens.access_token)
    check = await services.sessions.check(caller.user_id, caller.session_id)
    assert check.accepted

    await services.sessions.revoke_all(caller.user_id)
    result = await RecordActivityUseCase(services).execute(caller, "10.0.0.1", "pytest-agent")

    assert result.error.code == "SESSION_REVOKED"
    after = await services.sessions.check(caller.user_id, caller.session_id)
    assert after.state == "revoked"
    assert await services.sessions.list_sessions(caller.user_id) == []


@pytest.mark.asyncio
async def test_activity_re_records_session_lost_by_store(services, user):
    tokens = services.tokens.issue_tokens(identity_from_user(user, "device-1"))
    caller = services.tokens.verify_access(tokens.access_token)

    result = await RecordActivityUseCase(services).execute(caller, "10.0.0.1", "pytest-agent")

    assert result.is_ok()
    assert (await services.sessions.check(caller.user_id, caller.session_id)).state == "live"


@pytest.mark.asyncio
async def test_restore_refuses_revoked_session(services, user):
    tokens = await login(services, user)
    await services.sessions.revoke(tokens.session_id)

    restored = await services.sessions.restore_session(
        str(user.id), tokens.session_id, DeviceInfo(device_id="device-1")
    )

    assert restored is None
    assert await services.sessions.get(tokens.session_id) is None
