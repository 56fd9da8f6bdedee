from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.app.services.permission_evaluator import PermissionEvaluator
from src.domain.entities import Actor, MembershipRole
from tests.fixtures.factories import build_invitation


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.invitations = MagicMock()
    uow.invitations.find_by_id = AsyncMock(return_value=None)
    uow.invitations.find_by_code = AsyncMock(return_value=None)
    uow.invitations.conditional_transition = AsyncMock(return_value=True)
    uow.invitations.create = AsyncMock(side_effect=lambda inv: inv)
    uow.invitations.list_by_unit = AsyncMock(return_value=[])
    uow.invitations.list_by_organization = AsyncMock(return_value=[])
    uow.invitations.list_by_creator = AsyncMock(return_value=[])
    uow.invitations.find_stale_active = AsyncMock(return_value=[])

    uow.access_logs = MagicMock()
    # Echo the entry back so its default id is a real UUID
    uow.access_logs.append = AsyncMock(side_effect=lambda entry: entry)
    uow.access_logs.list_by_organization_paginated = AsyncMock(return_value=([], None))
    return uow


@pytest.fixture
def mock_notifier():
    notifier = MagicMock()
    notifier.publish = AsyncMock()
    return notifier


@pytest.fixture
def permissions():
    return PermissionEvaluator()


@pytest.fixture
def org_id():
    return uuid4()


@pytest.fixture
def unit_id():
    return uuid4()


@pytest.fixture
def guard(org_id):
    return Actor(user_id=uuid4(), organization_id=org_id, role=MembershipRole.guard.value)


@pytest.fixture
def resident(org_id, unit_id):
    return Actor(
        user_id=uuid4(),
        organization_id=org_id,
        role=MembershipRole.resident.value,
        membership_id=uuid4(),
        unit_id=unit_id,
    )


@pytest.fixture
def admin(org_id):
    return Actor(user_id=uuid4(), organization_id=org_id, role=MembershipRole.admin.value)


@pytest.fixture
def make_invitation(org_id, unit_id):
    def _make(**overrides):
        overrides.setdefault("organization_id", org_id)
        overrides.setdefault("unit_id", unit_id)
        return build_invitation(**overrides)

    return _make
