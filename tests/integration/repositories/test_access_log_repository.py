from uuid import uuid4

import pytest

from src.adapter.repositories.access_log_repository import AccessLogRepository
from src.domain.entities import AccessDirection, AccessLogEntry, AccessMethod
from src.domain.errors import InvalidCursorError
from tests.fixtures.factories import NOW


def manual_entry(organization_id, visitor_name, created_at=NOW):
    return AccessLogEntry(
        organization_id=organization_id,
        visitor_name=visitor_name,
        granted_by=uuid4(),
        direction=AccessDirection.entry,
        method=AccessMethod.manual,
        created_at=created_at,
    )


async def page_through(repository, organization_id, limit):
    seen, cursor = [], None
    while True:
        entries, cursor = await repository.list_by_organization_paginated(
            organization_id, limit=limit, cursor=cursor
        )
        seen.extend(e.visitor_name for e in entries)
        if cursor is None:
            return seen


@pytest.mark.asyncio
async def test_pages_through_entries_sharing_a_timestamp(db_session):
    repository = AccessLogRepository(db_session)
    organization_id = uuid4()
    for name in ("A", "B", "C"):
        await repository.append(manual_entry(organization_id, name))
    await db_session.commit()

    seen = await page_through(repository, organization_id, limit=1)

    assert sorted(seen) == ["A", "B", "C"]
    assert len(seen) == 3


@pytest.mark.asyncio
async def test_pages_are_newest_first_without_gaps(db_session):
    from datetime import timedelta

    repository = AccessLogRepository(db_session)
    organization_id = uuid4()
    await repository.append(manual_entry(organization_id, "old", NOW - timedelta(hours=1)))
    await repository.append(manual_entry(organization_id, "tie-1"))
    await repository.append(manual_entry(organization_id, "tie-2"))
    await repository.append(manual_entry(organization_id, "new", NOW + timedelta(hours=1)))
    await db_session.commit()

    seen = await page_through(repository, organization_id, limit=2)

    assert seen[0] == "new"
    assert seen[-1] == "old"
    assert sorted(seen[1:3]) == ["tie-1", "tie-2"]


@pytest.mark.parametrize("cursor", ["not-a-cursor", "bm90IGEgY3Vyc29y", "%%%"])
@pytest.mark.asyncio
async def test_malformed_cursor_is_rejected(db_session, cursor):
    repository = AccessLogRepository(db_session)

    with pytest.raises(InvalidCursorError):
        await repository.list_by_organization_paginated(uuid4(), limit=10, cursor=cursor)
