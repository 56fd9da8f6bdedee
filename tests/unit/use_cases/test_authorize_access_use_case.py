from datetime import timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from src.app.use_cases.access import AuthorizeAccessUseCase
from src.domain.entities import (
    AccessDenialReason,
    AccessDirection,
    AccessMethod,
    AccessType,
    Actor,
    InvitationStatus,
    InvitationVersion,
    MembershipRole,
)
from src.domain.errors import StoreUnavailableError
from tests.fixtures.factories import NOW


@pytest.fixture
def use_case(mock_uow, permissions, mock_notifier):
    return AuthorizeAccessUseCase(mock_uow, permissions, mock_notifier, clock=lambda: NOW)


# ============================================================================
# Grants
# ============================================================================


@pytest.mark.asyncio
async def test_grant_single_use_by_short_code(use_case, mock_uow, mock_notifier, guard, make_invitation):
    """Scenario: guard enters a valid short code in lower case"""
    invitation = make_invitation()
    mock_uow.invitations.find_by_code.return_value = invitation

    result = await use_case.execute("abc234", guard)

    assert result.is_ok()
    outcome = result.value
    assert outcome.granted is True
    assert outcome.reason is None
    assert outcome.invitation_snapshot.status == InvitationStatus.used
    assert outcome.invitation_snapshot.current_uses == 1
    assert outcome.access_log_id is not None

    mock_uow.invitations.find_by_code.assert_awaited_once_with("ABC234")
    mock_uow.invitations.conditional_transition.assert_awaited_once_with(
        invitation.id,
        InvitationVersion(status=InvitationStatus.active, current_uses=0),
        InvitationVersion(status=InvitationStatus.used, current_uses=1),
    )

    entry = mock_uow.access_logs.append.await_args.args[0]
    assert entry.id == outcome.access_log_id
    assert entry.invitation_id == invitation.id
    assert entry.unit_id == invitation.unit_id
    assert entry.granted_by == guard.user_id
    assert entry.method == AccessMethod.code
    assert entry.direction == AccessDirection.entry

    mock_uow.commit.assert_awaited_once()

    event = mock_notifier.publish.await_args.args[0]
    assert event.invitation_id == invitation.id
    assert event.new_status == InvitationStatus.used
    assert event.current_uses == 1


@pytest.mark.asyncio
async def test_grant_by_qr_payload_logs_qr_method(use_case, mock_uow, guard, make_invitation):
    invitation = make_invitation()
    mock_uow.invitations.find_by_id.return_value = invitation

    result = await use_case.execute(f"GATEPASS:{invitation.id}", guard, AccessDirection.exit)

    assert result.value.granted is True
    mock_uow.invitations.find_by_id.assert_awaited_once_with(invitation.id)
    entry = mock_uow.access_logs.append.await_args.args[0]
    assert entry.method == AccessMethod.qr
    assert entry.direction == AccessDirection.exit


@pytest.mark.asyncio
async def test_grant_multiple_use_keeps_active(use_case, mock_uow, guard, make_invitation):
    invitation = make_invitation(access_type=AccessType.multiple, max_uses=3, current_uses=1)
    mock_uow.invitations.find_by_code.return_value = invitation

    result = await use_case.execute("ABC234", guard)

    snapshot = result.value.invitation_snapshot
    assert result.value.granted is True
    assert snapshot.status == InvitationStatus.active
    assert snapshot.current_uses == 2
    assert snapshot.max_uses == 3


@pytest.mark.asyncio
async def test_kiosk_with_manual_capability_may_authorize(mock_uow, mock_notifier, make_invitation, org_id):
    from src.app.services.permission_evaluator import PermissionEvaluator

    evaluator = PermissionEvaluator({"kiosk": ["access.manual"]})
    kiosk = Actor(user_id=uuid4(), organization_id=org_id, role="kiosk")
    mock_uow.invitations.find_by_code.return_value = make_invitation()

    use_case = AuthorizeAccessUseCase(mock_uow, evaluator, mock_notifier, clock=lambda: NOW)
    result = await use_case.execute("ABC234", kiosk)

    assert result.value.granted is True


# ============================================================================
# Denials
# ============================================================================


@pytest.mark.asyncio
async def test_resident_is_unauthorized_before_any_lookup(use_case, mock_uow, resident):
    result = await use_case.execute("ABC234", resident)

    assert result.is_ok()
    assert result.value.granted is False
    assert result.value.reason == AccessDenialReason.unauthorized
    assert result.value.invitation_snapshot is None
    mock_uow.invitations.find_by_code.assert_not_awaited()
    mock_uow.__aenter__.assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_code_is_not_found(use_case, mock_uow, mock_notifier, guard):
    result = await use_case.execute("ZZZZZZ", guard)

    assert result.value.granted is False
    assert result.value.reason == AccessDenialReason.not_found
    assert result.value.invitation_snapshot is None
    mock_uow.invitations.conditional_transition.assert_not_awaited()
    mock_notifier.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_other_organization_invitation_is_not_found(use_case, mock_uow, make_invitation):
    mock_uow.invitations.find_by_code.return_value = make_invitation()
    outsider = Actor(user_id=uuid4(), organization_id=uuid4(), role=MembershipRole.guard.value)

    result = await use_case.execute("ABC234", outsider)

    assert result.value.reason == AccessDenialReason.not_found
    assert result.value.invitation_snapshot is None


@pytest.mark.asyncio
async def test_malformed_qr_payload_is_not_found(use_case, mock_uow, guard):
    result = await use_case.execute("GATEPASS:garbage", guard)

    assert result.value.reason == AccessDenialReason.not_found
    mock_uow.invitations.find_by_id.assert_not_awaited()
    mock_uow.invitations.find_by_code.assert_not_awaited()


@pytest.mark.asyncio
async def test_used_invitation_is_already_used(use_case, mock_uow, mock_notifier, guard, make_invitation):
    """Scenario: second scan of a single-use invitation"""
    mock_uow.invitations.find_by_code.return_value = make_invitation(
        status=InvitationStatus.used, current_uses=1
    )

    result = await use_case.execute("ABC234", guard)

    assert result.value.granted is False
    assert result.value.reason == AccessDenialReason.already_used
    assert result.value.invitation_snapshot.status == InvitationStatus.used
    mock_uow.invitations.conditional_transition.assert_not_awaited()
    mock_uow.access_logs.append.assert_not_awaited()
    mock_uow.commit.assert_not_awaited()
    mock_notifier.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_time_expired_invitation_is_expired(use_case, mock_uow, guard, make_invitation):
    """Scenario: stored active but valid_until has passed"""
    mock_uow.invitations.find_by_code.return_value = make_invitation(
        valid_until=NOW - timedelta(minutes=1)
    )

    result = await use_case.execute("ABC234", guard)

    assert result.value.reason == AccessDenialReason.expired
    assert result.value.invitation_snapshot.status == InvitationStatus.active


@pytest.mark.asyncio
async def test_future_invitation_is_not_yet_valid(use_case, mock_uow, guard, make_invitation):
    mock_uow.invitations.find_by_code.return_value = make_invitation(
        valid_from=NOW + timedelta(hours=2)
    )

    result = await use_case.execute("ABC234", guard)

    assert result.value.reason == AccessDenialReason.not_yet_valid


# ============================================================================
# Concurrency handling
# ============================================================================


@pytest.mark.asyncio
async def test_lost_race_is_reevaluated_and_granted(use_case, mock_uow, guard, make_invitation):
    stale = make_invitation(access_type=AccessType.multiple, max_uses=3, current_uses=0)
    fresh = make_invitation(
        id=stale.id, access_type=AccessType.multiple, max_uses=3, current_uses=1
    )
    mock_uow.invitations.find_by_code.return_value = stale
    mock_uow.invitations.find_by_id.return_value = fresh
    mock_uow.invitations.conditional_transition.side_effect = [False, True]

    result = await use_case.execute("ABC234", guard)

    assert result.value.granted is True
    assert result.value.invitation_snapshot.current_uses == 2
    assert mock_uow.invitations.conditional_transition.await_count == 2
    mock_uow.invitations.find_by_id.assert_awaited_once_with(stale.id)
    mock_uow.access_logs.append.assert_awaited_once()


@pytest.mark.asyncio
async def test_lost_race_on_single_use_reevaluates_to_already_used(
    use_case, mock_uow, guard, make_invitation
):
    stale = make_invitation()
    mock_uow.invitations.find_by_code.return_value = stale
    mock_uow.invitations.find_by_id.return_value = make_invitation(
        id=stale.id, status=InvitationStatus.used, current_uses=1
    )
    mock_uow.invitations.conditional_transition.return_value = False

    result = await use_case.execute("ABC234", guard)

    assert result.value.granted is False
    assert result.value.reason == AccessDenialReason.already_used
    mock_uow.invitations.conditional_transition.assert_awaited_once()
    mock_uow.access_logs.append.assert_not_awaited()


@pytest.mark.asyncio
async def test_second_lost_race_is_already_used(use_case, mock_uow, mock_notifier, guard, make_invitation):
    invitation = make_invitation(access_type=AccessType.multiple, max_uses=10, current_uses=0)
    mock_uow.invitations.find_by_code.return_value = invitation
    mock_uow.invitations.find_by_id.return_value = make_invitation(
        id=invitation.id, access_type=AccessType.multiple, max_uses=10, current_uses=4
    )
    mock_uow.invitations.conditional_transition.return_value = False

    result = await use_case.execute("ABC234", guard)

    assert result.value.granted is False
    assert result.value.reason == AccessDenialReason.already_used
    assert mock_uow.invitations.conditional_transition.await_count == 2
    mock_uow.commit.assert_not_awaited()
    mock_notifier.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_invitation_vanishing_during_retry_is_not_found(use_case, mock_uow, guard, make_invitation):
    mock_uow.invitations.find_by_code.return_value = make_invitation()
    mock_uow.invitations.find_by_id.return_value = None
    mock_uow.invitations.conditional_transition.return_value = False

    result = await use_case.execute("ABC234", guard)

    assert result.value.reason == AccessDenialReason.not_found


# ============================================================================
# Failures
# ============================================================================


@pytest.mark.asyncio
async def test_store_failure_is_an_error_not_a_denial(use_case, mock_uow, mock_notifier, guard):
    mock_uow.invitations.find_by_code.side_effect = StoreUnavailableError("find_by_code", "timeout")

    result = await use_case.execute("ABC234", guard)

    assert result.is_err()
    assert result.error.code == "STORE_UNAVAILABLE"
    mock_notifier.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_failed_commit_publishes_nothing(use_case, mock_uow, mock_notifier, guard, make_invitation):
    mock_uow.invitations.find_by_code.return_value = make_invitation()
    mock_uow.commit.side_effect = StoreUnavailableError("commit", "connection reset")

    result = await use_case.execute("ABC234", guard)

    assert result.is_err()
    assert result.error.code == "STORE_UNAVAILABLE"
    mock_notifier.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_notifier_failure_does_not_change_grant(use_case, mock_uow, mock_notifier, guard, make_invitation):
    mock_uow.invitations.find_by_code.return_value = make_invitation()
    mock_notifier.publish = AsyncMock(side_effect=ConnectionError("broker down"))

    result = await use_case.execute("ABC234", guard)

    assert result.is_ok()
    assert result.value.granted is True
    mock_uow.commit.assert_awaited_once()
