from uuid import uuid4

import pyotp
import pytest

from src.app.use_cases.auth.dtos import identity_from_user
from src.app.use_cases.two_factor import (
    DisableTwoFactorUseCase,
    SetupTwoFactorUseCase,
    TwoFactorAction,
    VerifyTwoFactorUseCase,
)
from src.domain.entities import User, UserRole


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


@pytest.fixture
def caller(services, user):
    tokens = services.tokens.issue_tokens(identity_from_user(user, "device-1"))
    return services.tokens.verify_access(tokens.access_token)


async def enroll(mock_uow, services, caller, context, user):
    setup = await SetupTwoFactorUseCase(mock_uow, services).execute(caller, context)
    secret = user.two_factor_config["secret"]
    await VerifyTwoFactorUseCase(mock_uow, services).execute(
        caller, TwoFactorAction.setup, pyotp.TOTP(secret).now(), context
    )
    return setup.value, secret


@pytest.mark.asyncio
async def test_setup_leaves_status_pending(mock_uow, services, caller, context, user):
    result = await SetupTwoFactorUseCase(mock_uow, services).execute(caller, context)

    assert result.is_ok()
    assert result.value.status == "pending_setup"
    assert len(result.value.backup_codes) == 10
    assert user.two_factor_config["status"] == "pending_setup"
    assert user.two_factor_enabled is False


@pytest.mark.asyncio
async def test_setup_verification_enables(mock_uow, services, caller, context, user):
    await enroll(mock_uow, services, caller, context, user)

    assert user.two_factor_config["status"] == "enabled"
    assert user.two_factor_enabled is True

    again = await SetupTwoFactorUseCase(mock_uow, services).execute(caller, context)
    assert again.error.code == "TWO_FACTOR_ALREADY_ENABLED"


@pytest.mark.asyncio
async def test_setup_verification_rejects_backup_code(mock_uow, services, caller, context, user):
    setup = await SetupTwoFactorUseCase(mock_uow, services).execute(caller, context)

    result = await VerifyTwoFactorUseCase(mock_uow, services).execute(
        caller, TwoFactorAction.setup, setup.value.backup_codes[0], context
    )

    assert result.error.code == "TWO_FACTOR_INVALID_CODE"
    assert user.two_factor_config["status"] == "pending_setup"


@pytest.mark.asyncio
async def test_verify_requires_enabled(mock_uow, services, caller, context, user):
    result = await VerifyTwoFactorUseCase(mock_uow, services).execute(
        caller, TwoFactorAction.verify, "123456", context
    )

    assert result.error.code == "TWO_FACTOR_NOT_CONFIGURED"


@pytest.mark.asyncio
async def test_backup_code_is_one_time(mock_uow, services, caller, context, user):
    setup, _ = await enroll(mock_uow, services, caller, context, user)
    code = setup.backup_codes[0]
    use_case = VerifyTwoFactorUseCase(mock_uow, services)

    first = await use_case.execute(caller, TwoFactorAction.verify, code, context)
    assert first.is_ok()
    assert first.value.used_backup_code is True
    assert first.value.backup_codes_remaining == 9

    second = await use_case.execute(caller, TwoFactorAction.verify, code, context)
    assert second.error.code == "TWO_FACTOR_INVALID_CODE"


@pytest.mark.asyncio
async def test_verification_attempts_are_rate_limited(mock_uow, services, caller, context, user):
    await enroll(mock_uow, services, caller, context, user)
    use_case = VerifyTwoFactorUseCase(mock_uow, services)

    for _ in range(5):
        await use_case.execute(caller, TwoFactorAction.verify, "FFFFFFFF", context)
    result = await use_case.execute(caller, TwoFactorAction.verify, "FFFFFFFF", context)

    assert result.error.code == "RATE_LIMITED"
    assert result.error.details["retry_after"] == 900


@pytest.mark.asyncio
async def test_disable_clears_secret(mock_uow, services, caller, context, user):
    _, secret = await enroll(mock_uow, services, caller, context, user)

    result = await DisableTwoFactorUseCase(mock_uow, services).execute(
        caller, pyotp.TOTP(secret).now(), context
    )

    assert result.is_ok()
    assert result.value.status == "disabled"
    assert user.two_factor_config == {"status": "disabled"}
    assert user.two_factor_enabled is False
