"""Tests for status transitions, status reports and feedback."""
import pytest
from httpx import AsyncClient

from cbdra.crud.notification import get_user_notifications
from cbdra.models import IncidentStatus, UserRole
from cbdra.services.incidents import can_transition


S = IncidentStatus


@pytest.mark.parametrize(
    "current,target,allowed",
    [
        (S.PENDING, S.VERIFIED, True),
        (S.PENDING, S.IN_PROGRESS, True),
        (S.VERIFIED, S.RESOLVED, True),
        (S.IN_PROGRESS, S.VERIFIED, False),
        (S.RESOLVED, S.IN_PROGRESS, False),
        (S.RESOLVED, S.CLOSED, True),
        (S.RESOLVED, S.REJECTED, True),
        (S.PENDING, S.REJECTED, True),
        (S.IN_PROGRESS, S.CLOSED, True),
        (S.REJECTED, S.PENDING, False),
        (S.CLOSED, S.RESOLVED, False),
        (S.VERIFIED, S.VERIFIED, True),
    ],
)
def test_transition_rules(current, target, allowed):
    assert can_transition(current, target) is allowed


@pytest.mark.asyncio
async def test_admin_patch_verifies_and_notifies_reporter(
    client: AsyncClient, db, make_incident, reporter, admin, auth, published
):
    incident = await make_incident(reporter)
    response = await client.patch(
        f"/api/incidents/{incident.id}",
        json={"status": "VERIFIED", "severity": 4, "assigned_to": "Fire Dept"},
        headers=auth(admin),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "VERIFIED"
    assert data["severity"] == 4
    assert data["assigned_to"] == "Fire Dept"
    assert data["verified_by_id"] == admin.id
    assert data["verified_at"] is not None

    notifications = await get_user_notifications(db, user_id=reporter.id)
    assert [n.title for n in notifications] == ["Incident Status Updated"]
    assert notifications[0].incident_id == incident.id
    assert published[-1][0] == f"user:{reporter.id}"


@pytest.mark.asyncio
async def test_admin_patch_rejects_backwards_transition(client: AsyncClient, make_incident, reporter, admin, auth):
    incident = await make_incident(reporter, status=IncidentStatus.RESOLVED)
    response = await client.patch(
        f"/api/incidents/{incident.id}", json={"status": "PENDING"}, headers=auth(admin)
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Cannot change status from RESOLVED to PENDING"


@pytest.mark.asyncio
async def test_admin_can_reject_resolved_incident(client: AsyncClient, make_incident, reporter, admin, auth):
    incident = await make_incident(reporter, status=IncidentStatus.RESOLVED)
    response = await client.patch(
        f"/api/incidents/{incident.id}", json={"status": "REJECTED"}, headers=auth(admin)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "REJECTED"


@pytest.mark.asyncio
async def test_patch_is_admin_only(client: AsyncClient, make_incident, reporter, volunteer, auth):
    incident = await make_incident(reporter)
    for user in (reporter, volunteer):
        response = await client.patch(
            f"/api/incidents/{incident.id}", json={"status": "VERIFIED"}, headers=auth(user)
        )
        assert response.status_code == 403


@pytest.mark.asyncio
async def test_patch_without_status_does_not_notify(
    client: AsyncClient, db, make_incident, reporter, admin, auth
):
    incident = await make_incident(reporter)
    response = await client.patch(f"/api/incidents/{incident.id}", json={"severity": 5}, headers=auth(admin))
    assert response.status_code == 200
    assert response.json()["status"] == "PENDING"
    assert await get_user_notifications(db, user_id=reporter.id) == []


@pytest.mark.asyncio
async def test_status_post_normalizes_and_logs(
    client: AsyncClient, db, make_incident, reporter, volunteer, auth
):
    incident = await make_incident(reporter, status=IncidentStatus.VERIFIED)
    response = await client.post(
        f"/api/incidents/{incident.id}/status",
        json={"status": "in progress", "message": "Team deployed"},
        headers=auth(volunteer),
    )
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["incident"]["status"] == "IN_PROGRESS"

    response = await client.get(f"/api/incidents/{incident.id}", headers=auth(volunteer))
    responses = response.json()["responses"]
    assert len(responses) == 1
    assert responses[0]["type"] == "STATUS_UPDATE"
    assert responses[0]["message"] == "Status updated to IN_PROGRESS: Team deployed"
    assert responses[0]["responder"]["id"] == volunteer.id

    notifications = await get_user_notifications(db, user_id=reporter.id)
    assert len(notifications) == 1


@pytest.mark.asyncio
async def test_status_post_validation(client: AsyncClient, make_incident, reporter, auth):
    incident = await make_incident(reporter)
    response = await client.post(
        f"/api/incidents/{incident.id}/status",
        json={"status": "exploded", "message": "?"},
        headers=auth(reporter),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid status"

    response = await client.post(
        f"/api/incidents/{incident.id}/status", json={"status": "VERIFIED"}, headers=auth(reporter)
    )
    assert response.status_code == 400

    response = await client.post(
        "/api/incidents/9999/status", json={"status": "VERIFIED", "message": "x"}, headers=auth(reporter)
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_reporter_status_change_does_not_notify_self(
    client: AsyncClient, db, make_incident, reporter, auth
):
    incident = await make_incident(reporter)
    response = await client.post(
        f"/api/incidents/{incident.id}/status",
        json={"status": "CLOSED", "message": "Resolved on its own"},
        headers=auth(reporter),
    )
    assert response.status_code == 200
    assert await get_user_notifications(db, user_id=reporter.id) == []


@pytest.mark.asyncio
async def test_status_report_requires_in_progress(
    client: AsyncClient, make_incident, reporter, volunteer, admin, auth
):
    incident = await make_incident(reporter, status=IncidentStatus.VERIFIED)
    payload = {
        "message": "Sandbags placed",
        "challenges_faced": "Road blocked",
        "successes_had": "Evacuated 20 people",
        "recommendations": "More boats",
    }
    response = await client.post(f"/api/incidents/{incident.id}/status-report", json=payload, headers=auth(volunteer))
    assert response.status_code == 400
    assert response.json()["error"] == "Status reports can only be provided for incidents in progress"

    in_progress = await make_incident(reporter, status=IncidentStatus.IN_PROGRESS)
    response = await client.post(
        f"/api/incidents/{in_progress.id}/status-report", json=payload, headers=auth(volunteer)
    )
    assert response.status_code == 201
    report = response.json()["status_report"]
    assert report["type"] == "STATUS_REPORT"
    assert report["challenges_faced"] == "Road blocked"
    assert report["successes_had"] == "Evacuated 20 people"

    response = await client.post(
        f"/api/incidents/{in_progress.id}/status-report", json=payload, headers=auth(admin)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_feedback_requires_resolved(client: AsyncClient, make_incident, reporter, auth):
    incident = await make_incident(reporter, status=IncidentStatus.IN_PROGRESS)
    response = await client.post(
        f"/api/incidents/{incident.id}/feedback", json={"message": "Thanks"}, headers=auth(reporter)
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Feedback can only be provided for resolved incidents"

    resolved = await make_incident(reporter, status=IncidentStatus.RESOLVED)
    response = await client.post(
        f"/api/incidents/{resolved.id}/feedback",
        json={"message": "Great response", "rating": 5},
        headers=auth(reporter),
    )
    assert response.status_code == 201
    feedback = response.json()["feedback"]
    assert feedback["type"] == "FEEDBACK"
    assert feedback["message"] == "Feedback (Rating: 5/5): Great response"
    assert feedback["rating"] == 5

    response = await client.post(
        f"/api/incidents/{resolved.id}/feedback",
        json={"message": "Great response", "rating": 9},
        headers=auth(reporter),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_status_values_stay_in_fixed_set(client: AsyncClient, make_user, make_incident, auth):
    ngo = await make_user(UserRole.NGO, verified=True)
    community = await make_user(UserRole.COMMUNITY_USER)
    incident = await make_incident(community)
    for status in ("Verified", "IN-PROGRESS", "resolved"):
        response = await client.post(
            f"/api/incidents/{incident.id}/status",
            json={"status": status, "message": "update"},
            headers=auth(ngo),
        )
        assert response.status_code == 200
        assert response.json()["incident"]["status"] in {s.value for s in IncidentStatus}
    assert response.json()["incident"]["status"] == "RESOLVED"
