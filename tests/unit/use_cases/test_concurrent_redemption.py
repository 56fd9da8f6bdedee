"""
Concurrent redemptions against an in-memory store whose conditional
transition behaves like a single UPDATE ... WHERE statement.
"""

import asyncio
from collections import Counter

import pytest

from src.app.services.permission_evaluator import PermissionEvaluator
from src.app.use_cases.access import AuthorizeAccessUseCase
from src.app.use_cases.invitations import CancelInvitationUseCase
from src.domain.entities import (
    AccessDenialReason,
    AccessType,
    InvitationStatus,
)
from tests.fixtures.factories import NOW
from tests.fixtures.in_memory_uow import InMemoryStore, InMemoryUnitOfWork


@pytest.fixture
def store():
    return InMemoryStore()


def authorize(store, notifier, actor, code):
    use_case = AuthorizeAccessUseCase(
        InMemoryUnitOfWork(store), PermissionEvaluator(), notifier, clock=lambda: NOW
    )
    return use_case.execute(code, actor)


@pytest.mark.asyncio
async def test_fifty_attendants_one_single_use_invitation(store, mock_notifier, guard, make_invitation):
    """Exactly one grant, everyone else sees already_used, one log entry"""
    invitation = make_invitation()
    store.add(invitation)

    results = await asyncio.gather(
        *[authorize(store, mock_notifier, guard, "ABC234") for _ in range(50)]
    )

    outcomes = [r.value for r in results]
    granted = [o for o in outcomes if o.granted]
    assert len(granted) == 1
    assert Counter(o.reason for o in outcomes if not o.granted) == {
        AccessDenialReason.already_used: 49
    }

    stored = store.get(invitation.id)
    assert stored.status == InvitationStatus.used
    assert stored.current_uses == 1
    assert len(store.access_logs) == 1
    assert store.access_logs[0].id == granted[0].access_log_id
    assert mock_notifier.publish.await_count == 1


@pytest.mark.asyncio
async def test_concurrent_multiple_use_never_exceeds_quota(store, mock_notifier, guard, make_invitation):
    """
    Contention may turn a redeemable attempt into already_used; callers
    retry, and the total number of grants still equals max_uses.
    """
    invitation = make_invitation(access_type=AccessType.multiple, max_uses=5)
    store.add(invitation)

    grants = 0
    for _ in range(20):
        results = await asyncio.gather(
            *[authorize(store, mock_notifier, guard, "ABC234") for _ in range(8)]
        )
        outcomes = [r.value for r in results]
        grants += sum(1 for o in outcomes if o.granted)
        assert {o.reason for o in outcomes if not o.granted} <= {
            AccessDenialReason.already_used,
            AccessDenialReason.quota_exhausted,
        }
        if all(o.reason == AccessDenialReason.quota_exhausted for o in outcomes):
            break

    stored = store.get(invitation.id)
    assert grants == 5
    assert stored.current_uses == 5
    assert stored.status == InvitationStatus.used
    assert len(store.access_logs) == 5


@pytest.mark.asyncio
async def test_cancel_racing_redemption_has_one_winner(
    store, mock_notifier, guard, admin, make_invitation
):
    invitation = make_invitation()
    store.add(invitation)
    cancel = CancelInvitationUseCase(InMemoryUnitOfWork(store), PermissionEvaluator(), mock_notifier)

    redeemed, cancelled = await asyncio.gather(
        authorize(store, mock_notifier, guard, "ABC234"),
        cancel.execute(invitation.id, admin),
    )

    assert redeemed.value.granted != cancelled.value.success
    stored = store.get(invitation.id)
    if redeemed.value.granted:
        assert stored.status == InvitationStatus.used
        assert cancelled.value.reason == AccessDenialReason.already_used
        assert len(store.access_logs) == 1
    else:
        assert stored.status == InvitationStatus.cancelled
        assert redeemed.value.reason == AccessDenialReason.cancelled
        assert store.access_logs == []
