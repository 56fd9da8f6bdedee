from uuid import uuid4

import pytest
from httpx import AsyncClient

from src.domain.entities import MembershipRole


# ============================================================================
# Create
# ============================================================================


@pytest.mark.asyncio
async def test_resident_creates_invitation(client: AsyncClient, resident_headers, unit_id, org_id):
    response = await client.post(
        "/invitations",
        json={
            "visitor_name": "Ana Ruiz",
            "visitor_phone": "+34 600 000 000",
            "visitor_email": "ana@example.com",
            "access_type": "multiple",
            "max_uses": 3,
        },
        headers=resident_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["unit_id"] == str(unit_id)
    assert data["organization_id"] == str(org_id)
    assert data["status"] == "active"
    assert data["current_uses"] == 0
    assert data["max_uses"] == 3
    assert data["qr_code"] == f"GATEPASS:{data['id']}"
    assert len(data["short_code"]) == 6


@pytest.mark.asyncio
async def test_creation_reaches_unit_screens(client: AsyncClient, notifier, org_id, unit_id, create_invitation):
    queue = notifier.subscribe(org_id)

    invitation = await create_invitation()

    event = queue.get_nowait()
    assert str(event.invitation_id) == invitation["id"]
    assert event.unit_id == unit_id
    assert event.new_status == "active"
    assert event.current_uses == 0


@pytest.mark.asyncio
async def test_invalid_policy_is_bad_request(client: AsyncClient, resident_headers):
    response = await client.post(
        "/invitations",
        json={"visitor_name": "Ana Ruiz", "access_type": "multiple"},
        headers=resident_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_ACCESS_POLICY"


@pytest.mark.asyncio
async def test_guard_cannot_create(client: AsyncClient, guard_headers):
    response = await client.post(
        "/invitations", json={"visitor_name": "Ana Ruiz"}, headers=guard_headers
    )

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "INSUFFICIENT_PERMISSION"


@pytest.mark.asyncio
async def test_admin_without_unit_must_name_one(client: AsyncClient, admin_headers):
    response = await client.post(
        "/invitations", json={"visitor_name": "Ana Ruiz"}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "UNIT_REQUIRED"


@pytest.mark.asyncio
async def test_invalid_email_is_unprocessable(client: AsyncClient, resident_headers):
    response = await client.post(
        "/invitations",
        json={"visitor_name": "Ana Ruiz", "visitor_email": "not-an-email"},
        headers=resident_headers,
    )

    assert response.status_code == 422


# ============================================================================
# Read
# ============================================================================


@pytest.mark.asyncio
async def test_get_invitation(client: AsyncClient, resident_headers, create_invitation):
    invitation = await create_invitation(notes="Bring parcel")

    response = await client.get(f"/invitations/{invitation['id']}", headers=resident_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["notes"] == "Bring parcel"
    assert data["effective_status"] == "active"


@pytest.mark.asyncio
async def test_neighbour_cannot_read_invitation(client: AsyncClient, auth_headers, create_invitation):
    invitation = await create_invitation()
    neighbour = auth_headers(MembershipRole.resident, unit_id=uuid4())

    response = await client.get(f"/invitations/{invitation['id']}", headers=neighbour)

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "INVITATION_NOT_FOUND"


@pytest.mark.asyncio
async def test_list_invitations_by_status(
    client: AsyncClient, guard_headers, resident_headers, create_invitation
):
    used = await create_invitation()
    active = await create_invitation()
    await client.post("/access/authorize", json={"code": used["short_code"]}, headers=guard_headers)

    response = await client.get(
        "/invitations", params={"status": "active"}, headers=resident_headers
    )

    assert response.status_code == 200
    ids = [i["id"] for i in response.json()["invitations"]]
    assert ids == [active["id"]]


@pytest.mark.asyncio
async def test_resident_cannot_list_other_unit(client: AsyncClient, resident_headers):
    response = await client.get(
        "/invitations", params={"unit_id": str(uuid4())}, headers=resident_headers
    )

    assert response.status_code == 403


# ============================================================================
# Cancel
# ============================================================================


@pytest.mark.asyncio
async def test_issuer_cancels_invitation(client: AsyncClient, notifier, org_id, resident_headers, create_invitation):
    invitation = await create_invitation()
    queue = notifier.subscribe(org_id)

    response = await client.post(f"/invitations/{invitation['id']}/cancel", headers=resident_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["invitation_snapshot"]["status"] == "cancelled"
    assert queue.get_nowait().new_status == "cancelled"

    again = await client.post(f"/invitations/{invitation['id']}/cancel", headers=resident_headers)
    assert again.json()["success"] is False
    assert again.json()["reason"] == "cancelled"


@pytest.mark.asyncio
async def test_cancel_after_redemption_is_already_used(
    client: AsyncClient, guard_headers, admin_headers, create_invitation
):
    invitation = await create_invitation()
    await client.post(
        "/access/authorize", json={"code": invitation["short_code"]}, headers=guard_headers
    )

    response = await client.post(f"/invitations/{invitation['id']}/cancel", headers=admin_headers)

    assert response.json()["success"] is False
    assert response.json()["reason"] == "already_used"


@pytest.mark.asyncio
async def test_other_resident_of_unit_cannot_cancel(
    client: AsyncClient, auth_headers, unit_id, create_invitation
):
    invitation = await create_invitation()
    housemate = auth_headers(MembershipRole.resident, unit_id=unit_id)

    response = await client.post(f"/invitations/{invitation['id']}/cancel", headers=housemate)

    assert response.json()["success"] is False
    assert response.json()["reason"] == "unauthorized"


@pytest.mark.asyncio
async def test_cancel_unknown_invitation(client: AsyncClient, admin_headers):
    response = await client.post(f"/invitations/{uuid4()}/cancel", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["reason"] == "not_found"


@pytest.mark.asyncio
async def test_event_stream_requires_view_capability(client: AsyncClient, auth_headers):
    headers = auth_headers(MembershipRole.resident)

    response = await client.get("/invitations/events", headers=headers)

    assert response.status_code == 403
