import pytest
from httpx import AsyncClient
from conftest import COUNSELOR, OUTSIDER, VICTIM, VALID_REFERRAL

CREATE_BODY = {key: value for key, value in VALID_REFERRAL.items() if key != "victim_id"}


async def create(client: AsyncClient, **overrides):
    return await client.post("/referrals/", json={**CREATE_BODY, **overrides})


@pytest.mark.asyncio
async def test_create_referral_unauthorized(client: AsyncClient):
    """Test creating a referral without authentication."""
    response = await create(client)
    assert response.status_code in [401, 403]


@pytest.mark.asyncio
async def test_create_referral_missing_permission(client: AsyncClient, act_as, auth_headers):
    act_as(VICTIM, permissions=["referral:read"])
    response = await client.post("/referrals/", json=CREATE_BODY, headers=auth_headers)
    assert response.status_code == 403
    assert "referral:create" in response.json()["detail"]


@pytest.mark.asyncio
async def test_create_and_get_referral(client: AsyncClient, act_as, auth_headers):
    act_as(VICTIM)

    response = await client.post("/referrals/", json=CREATE_BODY, headers=auth_headers)
    assert response.status_code == 201
    assert response.json() == {"referral_id": 0}

    response = await client.get("/referrals/0", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == 0
    assert data["victim_id"] == VICTIM
    assert data["needs"] == "Need help with anxiety"
    assert data["status"] == "open"
    assert data["counselor_id"] is None
    assert data["feedback_score"] is None
    assert data["satisfaction_level"] is None


@pytest.mark.asyncio
async def test_create_referral_invalid_field(client: AsyncClient, act_as, auth_headers):
    """Field errors come back as the store's error kind, not a generic 422."""
    act_as(VICTIM)
    response = await client.post("/referrals/", json={**CREATE_BODY, "needs": ""}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "InvalidNeeds"
    assert response.json()["detail"]["code"] == 101


@pytest.mark.asyncio
async def test_create_referral_unregistered_victim(client: AsyncClient, act_as, auth_headers):
    act_as(OUTSIDER)
    response = await client.post("/referrals/", json=CREATE_BODY, headers=auth_headers)

    assert response.status_code == 403
    assert response.json()["detail"] == {
        "error": "VictimNotRegistered",
        "code": 110,
        "message": f"{OUTSIDER} is not registered as a victim",
    }


@pytest.mark.asyncio
async def test_get_referral_not_found(client: AsyncClient, act_as, auth_headers):
    act_as(VICTIM)
    response = await client.get("/referrals/12", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "ReferralNotFound"


@pytest.mark.asyncio
async def test_full_lifecycle_over_http(client: AsyncClient, act_as, auth_headers):
    act_as(VICTIM)
    await client.post("/referrals/", json=CREATE_BODY, headers=auth_headers)

    act_as(COUNSELOR)
    response = await client.put("/referrals/0/accept", json={}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"referral_id": 0, "success": True}

    response = await client.get("/referrals/0/update", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["update_status"] == "accepted"
    assert response.json()["updater"] == COUNSELOR

    response = await client.put("/referrals/0/session/start", headers=auth_headers)
    assert response.status_code == 200
    response = await client.put("/referrals/0/session/complete", headers=auth_headers)
    assert response.status_code == 200

    act_as(VICTIM)
    response = await client.put("/referrals/0/feedback", json={"score": 4}, headers=auth_headers)
    assert response.status_code == 200

    data = (await client.get("/referrals/0", headers=auth_headers)).json()
    assert data["status"] == "completed"
    assert data["counselor_id"] == COUNSELOR
    assert data["feedback_score"] == 4
    assert data["satisfaction_level"] == "SATISFIED"

    response = await client.put("/referrals/0/feedback", json={"score": 6}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "InvalidFeedback"


@pytest.mark.asyncio
async def test_accept_twice_conflicts(client: AsyncClient, act_as, auth_headers):
    act_as(VICTIM)
    await client.post("/referrals/", json=CREATE_BODY, headers=auth_headers)

    act_as(COUNSELOR)
    await client.put("/referrals/0/accept", json={}, headers=auth_headers)
    response = await client.put("/referrals/0/accept", json={}, headers=auth_headers)

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "InvalidStatus"


@pytest.mark.asyncio
async def test_accept_match_failure(client: AsyncClient, act_as, auth_headers, collaborators):
    act_as(VICTIM)
    await client.post("/referrals/", json=CREATE_BODY, headers=auth_headers)
    collaborators.match_recorder.available = False

    act_as(COUNSELOR)
    response = await client.put("/referrals/0/accept", json={}, headers=auth_headers)

    assert response.status_code == 502
    assert response.json()["detail"]["error"] == "MatchingFailed"


@pytest.mark.asyncio
async def test_update_status_and_self_transition(client: AsyncClient, act_as, auth_headers):
    act_as(VICTIM)
    await client.post("/referrals/", json=CREATE_BODY, headers=auth_headers)

    response = await client.put(
        "/referrals/0/status",
        json={"status": "in-progress", "reason": "Starting now"},
        headers=auth_headers,
    )
    assert response.status_code == 200

    response = await client.put(
        "/referrals/0/status",
        json={"status": "in-progress", "reason": "Again"},
        headers=auth_headers,
    )
    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "StatusUpdateNotAllowed"

    act_as(OUTSIDER)
    response = await client.put(
        "/referrals/0/status",
        json={"status": "closed", "reason": "Mine"},
        headers=auth_headers,
    )
    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "NotAuthorized"


@pytest.mark.asyncio
async def test_reject_then_close(client: AsyncClient, act_as, auth_headers):
    act_as(VICTIM)
    await client.post("/referrals/", json=CREATE_BODY, headers=auth_headers)

    act_as(COUNSELOR)
    await client.put("/referrals/0/accept", json={}, headers=auth_headers)
    response = await client.put("/referrals/0/reject", json={"reason": "Unavailable"}, headers=auth_headers)
    assert response.status_code == 200

    act_as(VICTIM)
    data = (await client.get("/referrals/0", headers=auth_headers)).json()
    assert data["status"] == "rejected"
    assert data["counselor_id"] is None

    response = await client.put("/referrals/0/close", json={"reason": "Done"}, headers=auth_headers)
    assert response.status_code == 200
    response = await client.put("/referrals/0/close", json={"reason": "Again"}, headers=auth_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_victim_referral_index(client: AsyncClient, act_as, auth_headers):
    act_as(VICTIM)
    await client.post("/referrals/", json=CREATE_BODY, headers=auth_headers)
    await client.post("/referrals/", json=CREATE_BODY, headers=auth_headers)

    response = await client.get(f"/referrals/victims/{VICTIM}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"victim_id": VICTIM, "referral_ids": [0, 1], "count": 2}


@pytest.mark.asyncio
async def test_update_record_missing(client: AsyncClient, act_as, auth_headers):
    act_as(VICTIM)
    await client.post("/referrals/", json=CREATE_BODY, headers=auth_headers)

    response = await client.get("/referrals/0/update", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Referral 0 has no update record yet"


@pytest.mark.asyncio
async def test_update_record_unknown_referral(client: AsyncClient, act_as, auth_headers):
    act_as(VICTIM)
    response = await client.get("/referrals/5/update", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "ReferralNotFound"
