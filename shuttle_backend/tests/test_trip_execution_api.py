"""
Integration tests for daily generation and crew trip execution.

Generate -> start -> board / alight / no-show -> complete, with crew
checks, illegal transitions and the per-trip lock.
"""

import pytest

from shuttle_backend.app.services.audit import AuditAction, get_entity_history
from shuttle_backend.app.services.trip_locks import lock_key

MONDAY = "2025-01-20"


@pytest.fixture
async def trip_id(client, fleet, make_schedule, auth):
    """Generate Monday's trip for one weekday schedule."""
    await make_schedule()
    response = await client.post(
        "/v1/admin/trips/generate", params={"trip_date": MONDAY}, headers=auth(fleet.admin)
    )
    assert response.status_code == 200
    assert response.json()["created_count"] == 1
    return response.json()["created"][0]["id"]


@pytest.mark.asyncio
async def test_generation_endpoint_is_idempotent(client, fleet, make_schedule, auth):
    schedule = await make_schedule()
    headers = auth(fleet.admin)
    
    first = await client.post("/v1/admin/trips/generate", params={"trip_date": MONDAY}, headers=headers)
    second = await client.post("/v1/admin/trips/generate", params={"trip_date": MONDAY}, headers=headers)
    
    assert first.status_code == 200
    created = first.json()["created"][0]
    assert created["status"] == "pending"
    assert created["assigned_driver_id"] == fleet.driver.id
    assert len(created["passengers"]) == 3
    
    data = second.json()
    assert data["created_count"] == 0
    assert data["failure_count"] == 0
    assert data["skipped"] == [{"schedule_id": schedule.id, "reason": "already generated", "detail": None}]


@pytest.mark.asyncio
async def test_generation_requires_admin(client, fleet, auth):
    response = await client.post(
        "/v1/admin/trips/generate", params={"trip_date": MONDAY}, headers=auth(fleet.driver)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_generation_defaults_to_today(client, fleet, make_schedule, auth):
    await make_schedule()
    response = await client.post("/v1/admin/trips/generate", headers=auth(fleet.admin))
    
    assert response.status_code == 200
    # the test clock is pinned to a Monday
    assert response.json()["trip_date"] == MONDAY


@pytest.mark.asyncio
async def test_crew_sees_only_own_trips(client, fleet, trip_id, auth):
    mine = await client.get("/v1/crew/trips", params={"trip_date": MONDAY}, headers=auth(fleet.driver))
    assert mine.status_code == 200
    assert [t["id"] for t in mine.json()["trips"]] == [trip_id]
    
    attendant = await client.get(
        "/v1/crew/trips", params={"trip_date": MONDAY}, headers=auth(fleet.attendant)
    )
    assert attendant.json()["total"] == 1
    
    other = await client.get(
        "/v1/crew/trips", params={"trip_date": MONDAY}, headers=auth(fleet.substitute)
    )
    assert other.json()["total"] == 0


@pytest.mark.asyncio
async def test_full_run(client, fleet, trip_id, clock, auth, db_session):
    headers = auth(fleet.driver)
    first, second, third = (p.id for p in fleet.passengers)
    
    response = await client.post(
        f"/v1/crew/trips/{trip_id}/start",
        json={"location": {"latitude": 37.5665, "longitude": 126.978}},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "in_progress"
    assert response.json()["started_by"] == f"driver:{fleet.driver.id}"
    
    clock.advance(minutes=5)
    response = await client.post(f"/v1/crew/trips/{trip_id}/passengers/{first}/board", headers=headers)
    assert response.status_code == 200
    assert response.json()["boarding_state"] == "boarded"
    
    response = await client.post(
        f"/v1/crew/trips/{trip_id}/passengers/{second}/no-show", json={"reason": "sick"}, headers=headers
    )
    assert response.json()["boarding_state"] == "no_show"
    
    clock.advance(minutes=30)
    response = await client.post(f"/v1/crew/trips/{trip_id}/passengers/{first}/alight", headers=headers)
    assert response.json()["boarding_state"] == "alighted"
    assert response.json()["boarding_duration_minutes"] == 30
    
    clock.advance(minutes=10)
    response = await client.post(f"/v1/crew/trips/{trip_id}/complete", json={}, headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["duration_minutes"] == 45
    
    states = {p["passenger_id"]: p["boarding_state"] for p in data["passengers"]}
    assert states == {first: "alighted", second: "no_show", third: "waiting"}
    
    history = await get_entity_history(db_session, "trip", trip_id)
    assert [entry.action for entry in history] == [AuditAction.TRIP_COMPLETED, AuditAction.TRIP_STARTED]
    assert history[1].meta_data["started_by"] == f"driver:{fleet.driver.id}"


@pytest.mark.asyncio
async def test_attendant_can_start(client, fleet, trip_id, auth):
    response = await client.post(f"/v1/crew/trips/{trip_id}/start", headers=auth(fleet.attendant))
    
    assert response.status_code == 200
    assert response.json()["started_by"] == f"attendant:{fleet.attendant.id}"


@pytest.mark.asyncio
async def test_attendant_without_start_permission_is_forbidden(client, fleet, make_schedule, auth):
    await make_schedule(default_attendant_id=fleet.relief_attendant.id)
    generated = await client.post(
        "/v1/admin/trips/generate", params={"trip_date": MONDAY}, headers=auth(fleet.admin)
    )
    trip_id = generated.json()["created"][0]["id"]
    start_url = f"/v1/crew/trips/{trip_id}/start"
    
    denied = await client.post(start_url, headers=auth(fleet.relief_attendant))
    assert denied.status_code == 403
    assert denied.json()["error_code"] == "ERR_PERM_001"
    
    # Other crew commands stay open to the attendant
    passenger_id = fleet.passengers[0].id
    boarded = await client.post(
        f"/v1/crew/trips/{trip_id}/passengers/{passenger_id}/board",
        headers=auth(fleet.relief_attendant)
    )
    assert boarded.status_code == 200
    
    granted = await client.put(
        f"/v1/admin/attendants/{fleet.relief_attendant.id}/start-permission",
        json={"can_start_trip": True},
        headers=auth(fleet.admin)
    )
    assert granted.status_code == 200
    assert granted.json()["can_start_trip"] is True
    
    started = await client.post(start_url, headers=auth(fleet.relief_attendant))
    assert started.status_code == 200
    assert started.json()["started_by"] == f"attendant:{fleet.relief_attendant.id}"


@pytest.mark.asyncio
async def test_revoked_start_permission_applies_immediately(client, fleet, trip_id, auth):
    revoked = await client.put(
        f"/v1/admin/attendants/{fleet.attendant.id}/start-permission",
        json={"can_start_trip": False},
        headers=auth(fleet.admin)
    )
    assert revoked.json()["can_start_trip"] is False
    
    response = await client.post(f"/v1/crew/trips/{trip_id}/start", headers=auth(fleet.attendant))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_start_permission_is_for_attendants_only(client, fleet, auth):
    url = f"/v1/admin/attendants/{fleet.driver.id}/start-permission"
    
    assert (await client.put(url, json={"can_start_trip": True}, headers=auth(fleet.admin))).status_code == 400
    assert (await client.put(url, json={"can_start_trip": True}, headers=auth(fleet.attendant))).status_code == 403
    missing = await client.put(
        "/v1/admin/attendants/9999/start-permission", json={"can_start_trip": True}, headers=auth(fleet.admin)
    )
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_unassigned_driver_is_forbidden(client, fleet, trip_id, auth):
    response = await client.post(f"/v1/crew/trips/{trip_id}/start", headers=auth(fleet.substitute))
    
    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PERM_001"


@pytest.mark.asyncio
async def test_complete_pending_trip_is_rejected(client, fleet, trip_id, auth):
    response = await client.post(f"/v1/crew/trips/{trip_id}/complete", headers=auth(fleet.driver))
    
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_TRANSITION_001"
    assert response.json()["details"]["current_state"] == "pending"
    
    trip = await client.get(f"/v1/crew/trips/{trip_id}", headers=auth(fleet.driver))
    assert trip.json()["status"] == "pending"


@pytest.mark.asyncio
async def test_admin_cancel_then_start_rejected(client, fleet, trip_id, auth):
    response = await client.post(
        f"/v1/crew/trips/{trip_id}/cancel", json={"reason": "snow day"}, headers=auth(fleet.admin)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["cancellation_reason"] == "snow day"
    
    response = await client.post(f"/v1/crew/trips/{trip_id}/start", headers=auth(fleet.driver))
    assert response.status_code == 409
    
    response = await client.post(
        f"/v1/crew/trips/{trip_id}/cancel", json={"reason": "again"}, headers=auth(fleet.admin)
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_alight_without_board_is_rejected(client, fleet, trip_id, auth):
    passenger_id = fleet.passengers[0].id
    response = await client.post(
        f"/v1/crew/trips/{trip_id}/passengers/{passenger_id}/alight", headers=auth(fleet.driver)
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_reset_after_no_show(client, fleet, trip_id, auth):
    headers = auth(fleet.attendant)
    passenger_id = fleet.passengers[0].id
    base = f"/v1/crew/trips/{trip_id}/passengers/{passenger_id}"
    
    await client.post(f"{base}/no-show", json={"reason": "absent"}, headers=headers)
    assert (await client.post(f"{base}/board", headers=headers)).status_code == 409
    
    response = await client.post(f"{base}/reset", headers=headers)
    assert response.json()["boarding_state"] == "waiting"
    assert (await client.post(f"{base}/board", headers=headers)).status_code == 200


@pytest.mark.asyncio
async def test_unknown_passenger_is_not_found(client, fleet, trip_id, auth):
    response = await client.post(
        f"/v1/crew/trips/{trip_id}/passengers/9999/board", headers=auth(fleet.driver)
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_roster_frozen_after_completion(client, fleet, trip_id, auth):
    headers = auth(fleet.driver)
    await client.post(f"/v1/crew/trips/{trip_id}/start", headers=headers)
    await client.post(f"/v1/crew/trips/{trip_id}/complete", headers=headers)
    
    response = await client.post(
        f"/v1/crew/trips/{trip_id}/passengers/{fleet.passengers[0].id}/board", headers=headers
    )
    assert response.status_code == 409
    assert "frozen" in response.json()["message"]


@pytest.mark.asyncio
async def test_locked_trip_is_busy(client, fleet, trip_id, mock_redis, auth):
    mock_redis.store[lock_key(trip_id)] = "another-request"
    
    response = await client.post(f"/v1/crew/trips/{trip_id}/start", headers=auth(fleet.driver))
    
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_TRIP_LOCKED"


@pytest.mark.asyncio
async def test_missing_token_is_rejected(client, trip_id):
    response = await client.post(f"/v1/crew/trips/{trip_id}/start")
    assert response.status_code in (401, 403)
