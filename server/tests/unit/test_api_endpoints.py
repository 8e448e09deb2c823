"""Integration tests for API endpoints."""

import pytest


@pytest.mark.asyncio
async def test_create_reservation_endpoint(test_client, sample_reservation_data):
    """Book a room and read it back."""
    response = await test_client.post("/v1/reservation/create", json=sample_reservation_data)

    assert response.status_code == 200
    data = response.json()
    assert len(data["reservations"]) == 1
    reservation = data["reservations"][0]
    assert reservation["room_id"] == "room-201"
    assert reservation["check_in"] == "2024-03-01"
    assert reservation["status"] == "confirmed"
    assert data["invoice"]["nights"] == 3

    response = await test_client.post("/v1/reservation/get", json={"reservation_id": reservation["id"]})
    assert response.status_code == 200
    assert response.json()["id"] == reservation["id"]


@pytest.mark.asyncio
async def test_create_reservation_conflict(test_client, sample_reservation_data):
    """A second booking over the same nights is rejected with problem details."""
    first = await test_client.post("/v1/reservation/create", json=sample_reservation_data)
    assert first.status_code == 200

    response = await test_client.post("/v1/reservation/create", json=sample_reservation_data)

    assert response.status_code == 409
    data = response.json()
    assert data["status"] == 409
    assert data["code"] == "ROOM_UNAVAILABLE"
    assert data["conflicting_resource"]["room_id"] == "room-201"


@pytest.mark.asyncio
async def test_create_reservation_idempotent(test_client, sample_reservation_data):
    """The same Idempotency-Key replays the first response."""
    headers = {"Idempotency-Key": "booking-123"}

    first = await test_client.post("/v1/reservation/create", json=sample_reservation_data, headers=headers)
    second = await test_client.post("/v1/reservation/create", json=sample_reservation_data, headers=headers)

    assert first.status_code == second.status_code == 200
    assert first.json() == second.json()

    listed = await test_client.post("/v1/reservation/list", json={})
    assert len(listed.json()["items"]) == 1


@pytest.mark.asyncio
async def test_idempotency_key_reused_with_other_body(test_client, sample_reservation_data):
    headers = {"Idempotency-Key": "booking-123"}
    await test_client.post("/v1/reservation/create", json=sample_reservation_data, headers=headers)

    changed = dict(sample_reservation_data, check_out="2024-03-05")
    response = await test_client.post("/v1/reservation/create", json=changed, headers=headers)

    assert response.status_code == 409
    assert response.json()["code"] == "IDEMPOTENCY_KEY_MISMATCH"


@pytest.mark.asyncio
async def test_create_reservation_bad_dates(test_client, sample_reservation_data):
    """Missing and reversed dates come back keyed by field."""
    data = dict(sample_reservation_data, check_in=None, check_out="2024-02-01")
    response = await test_client.post("/v1/reservation/create", json=data)

    assert response.status_code == 400
    body = response.json()
    assert body["title"] == "Validation Error"
    assert "check_in" in body["errors"]


@pytest.mark.asyncio
async def test_create_reservation_invalid_body(test_client):
    """Schema violations render as problem details with violations."""
    response = await test_client.post("/v1/reservation/create", json={"adults": 0, "selections": []})

    assert response.status_code == 422
    data = response.json()
    assert data["status"] == 422
    assert "violations" in data


@pytest.mark.asyncio
async def test_extend_and_cancel_flow(test_client, sample_reservation_data):
    created = await test_client.post("/v1/reservation/create", json=sample_reservation_data)
    reservation_id = created.json()["reservations"][0]["id"]

    response = await test_client.post(
        "/v1/reservation/extend",
        json={"reservation_id": reservation_id, "new_check_out": "2024-03-03"},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_EXTENSION"

    response = await test_client.post(
        "/v1/reservation/extend",
        json={"reservation_id": reservation_id, "new_check_out": "2024-03-05"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["reservation"]["check_out"] == "2024-03-05"
    assert data["extension_price"] == 120.0

    response = await test_client.post("/v1/reservation/cancel", json={"reservation_id": reservation_id})
    assert response.status_code == 200
    assert response.json()["status"] == "canceled"


@pytest.mark.asyncio
async def test_availability_endpoints(test_client, sample_reservation_data):
    created = await test_client.post("/v1/reservation/create", json=sample_reservation_data)
    reservation_id = created.json()["reservations"][0]["id"]

    response = await test_client.post(
        "/v1/availability/check",
        json={"room_id": "room-201", "check_in": "2024-03-04", "check_out": "2024-03-06"},
    )
    assert response.status_code == 200
    assert response.json()["available"] is True

    response = await test_client.post(
        "/v1/availability/check",
        json={"room_id": "room-201", "check_in": "2024-03-03", "check_out": "2024-03-06"},
    )
    assert response.json()["available"] is False
    assert response.json()["conflicts"][0]["reservation_id"] == reservation_id

    response = await test_client.post(
        "/v1/availability/extension",
        json={"reservation_id": reservation_id, "new_check_out": "2024-03-04"},
    )
    assert response.status_code == 200
    assert response.json()["reason"] == "INVALID_DATE"


@pytest.mark.asyncio
async def test_unknown_room_is_not_found(test_client):
    response = await test_client.post(
        "/v1/availability/check",
        json={"room_id": "room-999", "check_in": "2024-03-04", "check_out": "2024-03-06"},
    )
    assert response.status_code == 404
    assert response.json()["resource_type"] == "room"


@pytest.mark.asyncio
async def test_pricing_endpoints(test_client, sample_reservation_data):
    quote_request = {
        "check_in": "2024-03-01",
        "check_out": "2024-03-04",
        "adults": 2,
        "selections": [{"room_id": "room-201"}],
    }
    response = await test_client.post("/v1/pricing/quote", json=quote_request)
    assert response.status_code == 200
    assert response.json()["subtotal"] == 360.0
    assert response.json()["total"] == 396.0

    created = await test_client.post("/v1/reservation/create", json=sample_reservation_data)
    reservation_id = created.json()["reservations"][0]["id"]

    response = await test_client.post(
        "/v1/pricing/invoice",
        json={
            "reservation_id": reservation_id,
            "services": [{"name": "Spa", "quantity": 1, "unit_price": 40.0}],
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["tax_percent"] == 12.0
    assert data["sub_total"] == pytest.approx(550.0)

    response = await test_client.post("/v1/pricing/payment", json={"total": 100.0, "mode": "half"})
    assert response.status_code == 200
    assert response.json() == {"mode": "half", "amount_paid": 50.0, "balance": 50.0}


@pytest.mark.asyncio
async def test_inventory_endpoints(test_client):
    response = await test_client.post("/v1/inventory/rooms", json={"room_type_id": "rt-deluxe"})
    assert response.status_code == 200
    assert [room["room_number"] for room in response.json()["items"]] == ["201", "202", "203"]

    response = await test_client.post("/v1/inventory/rooms", json={"status": "maintenance"})
    assert [room["id"] for room in response.json()["items"]] == ["room-203"]

    response = await test_client.post("/v1/inventory/room-types", json={})
    assert len(response.json()["items"]) == 3

    response = await test_client.post("/v1/inventory/meal-plans", json={})
    assert {plan["code"] for plan in response.json()["items"]} == {"BB", "HB", "FB", "AI"}


@pytest.mark.asyncio
async def test_metrics_endpoint(test_client):
    """Test the Prometheus metrics endpoint."""
    response = await test_client.get("/metrics")

    assert response.status_code == 200
    assert "reservations_created_total" in response.text


@pytest.mark.asyncio
async def test_extend_into_another_room_endpoint(test_client, sample_reservation_data):
    created = await test_client.post("/v1/reservation/create", json=sample_reservation_data)
    reservation_id = created.json()["reservations"][0]["id"]
    next_guest = {**sample_reservation_data, "check_in": "2024-03-04", "check_out": "2024-03-08"}
    assert (await test_client.post("/v1/reservation/create", json=next_guest)).status_code == 200

    response = await test_client.post(
        "/v1/reservation/extend",
        json={"reservation_id": reservation_id, "new_check_out": "2024-03-06"},
    )
    assert response.status_code == 409

    response = await test_client.post(
        "/v1/reservation/extension-rooms",
        json={"reservation_id": reservation_id, "new_check_out": "2024-03-06"},
    )
    assert [room["id"] for room in response.json()["items"]] == ["room-202", "room-301"]

    response = await test_client.post(
        "/v1/reservation/extend",
        json={"reservation_id": reservation_id, "new_check_out": "2024-03-06", "room_id": "room-202"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["reservation"]["room_id"] == "room-202"
    assert data["reservation"]["check_out"] == "2024-03-06"
    assert data["extension_price"] == 240.0


@pytest.mark.asyncio
async def test_refund_endpoint(test_client, sample_reservation_data):
    created = await test_client.post("/v1/reservation/create", json=sample_reservation_data)
    reservation = created.json()["reservations"][0]

    response = await test_client.post(
        "/v1/pricing/refund",
        json={"reservation_id": reservation["id"], "as_of": "2024-02-26"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["days_until_check_in"] == 4
    assert data["refund_percent"] == 50.0
    assert data["refundable_amount"] == pytest.approx(reservation["total_amount"] / 2)

    response = await test_client.post("/v1/pricing/refund", json={"reservation_id": "missing"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_crashed_idempotent_request_releases_key(
    test_app, idempotency_service, sample_reservation_data, monkeypatch
):
    from httpx import ASGITransport, AsyncClient

    from frontdesk.services.reservation_service import ReservationService

    async def crash(self, request, idempotency_key=None):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(ReservationService, "create_reservation", crash)

    transport = ASGITransport(app=test_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post(
            "/v1/reservation/create",
            json=sample_reservation_data,
            headers={"Idempotency-Key": "crash-1"},
        )

    assert response.status_code == 500
    assert idempotency_service.pending_keys() == 0
    assert len(idempotency_service) == 0
