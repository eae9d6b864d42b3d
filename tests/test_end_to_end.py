"""Full flow: signup through verification, reporting, allocation and acceptance."""
import pytest
from httpx import AsyncClient

from cbdra.crud.notification import get_user_notifications
from cbdra.crud.user import get_user_by_email


@pytest.mark.asyncio
async def test_report_to_accepted_allocation(client: AsyncClient, db, admin, volunteer, auth, outbox):
    # Sign up and verify
    response = await client.post(
        "/api/auth/signup",
        json={
            "name": "Casey Community",
            "email": "Casey@Example.com",
            "password": "Secret!123",
            "role": "COMMUNITY_USER",
            "allergies": "Penicillin",
        },
    )
    assert response.status_code == 200
    assert response.json()["email"] == "casey@example.com"

    message = outbox.to("casey@example.com")[0]
    user = await get_user_by_email(db, "casey@example.com")
    assert user.otp in outbox.body(message)

    response = await client.post("/api/auth/verify-otp", json={"email": "casey@example.com", "otp": user.otp})
    assert response.status_code == 200

    # Sign in with the session cookie
    response = await client.post(
        "/api/auth/login", data={"username": "casey@example.com", "password": "Secret!123"}
    )
    assert response.status_code == 200

    response = await client.post(
        "/api/incidents",
        json={
            "title": "House fire",
            "description": "Smoke from the second floor",
            "type": "FIRE",
            "address": "4 Elm Street",
            "severity": 4,
        },
    )
    assert response.status_code == 201
    incident = response.json()
    assert incident["status"] == "PENDING"
    client.cookies.clear()

    # Admin verifies
    response = await client.patch(
        f"/api/incidents/{incident['id']}", json={"status": "VERIFIED"}, headers=auth(admin)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "VERIFIED"
    assert response.json()["verified_at"] is not None

    # Admin allocates a volunteer
    response = await client.post(
        f"/api/incidents/{incident['id']}/allocate",
        json={"allocated_to_id": volunteer.id, "resource_type": "Firefighting", "priority": 5},
        headers=auth(admin),
    )
    assert response.status_code == 201
    allocation = response.json()
    assert allocation["status"] == "ASSIGNED"
    assert [n.title for n in await get_user_notifications(db, user_id=volunteer.id)] == ["New Incident Assignment"]
    reporter_titles = [n.title for n in await get_user_notifications(db, user_id=user.id)]
    assert "Responders Assigned" in reporter_titles
    assert "Incident Status Updated" in reporter_titles

    # Volunteer accepts
    response = await client.patch(
        f"/api/incidents/{incident['id']}/allocate",
        json={"allocation_id": allocation["id"], "decision": "ACCEPT"},
        headers=auth(volunteer),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "ACCEPTED"
    assert [n.title for n in await get_user_notifications(db, user_id=admin.id)] == ["Allocation Accepted"]

    # Reporter sees the whole picture
    response = await client.get(f"/api/incidents/{incident['id']}", headers=auth(user))
    detail = response.json()
    assert detail["allocations"][0]["status"] == "ACCEPTED"
    assert detail["allocations"][0]["allocated_to"]["name"] == "Val Volunteer"
