"""
Integration tests for the REST API endpoints.

Runs the real routes against a SQLite database with the session and
notifier dependencies overridden (see ``conftest.client``).
"""

from httpx import AsyncClient
import pytest

DRIVER = "driver-1"

RIDE_BODY = {
    "driverId": DRIVER,
    "sourceLat": 12.9716,
    "sourceLng": 77.5946,
    "sourceAddress": "Main Campus Gate",
    "destLat": 12.9352,
    "destLng": 77.6245,
    "destAddress": "Tech Park",
    "departureTime": "2026-11-02T08:30:00+00:00",
    "seatsTotal": 2,
    "costPerSeat": 40,
}


async def _post_ride(client: AsyncClient, **overrides) -> dict:
    resp = await client.post("/api/v1/rides", json={**RIDE_BODY, **overrides})
    assert resp.status_code == 200, resp.text
    return resp.json()


async def _book(client: AsyncClient, ride_id: str, passenger: str, seats: int = 1):
    return await client.post(
        "/api/v1/bookings",
        json={"rideId": ride_id, "passengerId": passenger, "seatsBooked": seats},
    )


async def _patch(client: AsyncClient, booking_id: str, status: str, user: str | None):
    headers = {"x-user-id": user} if user else {}
    return await client.patch(
        f"/api/v1/bookings/{booking_id}", json={"status": status}, headers=headers
    )


async def _seats_available(client: AsyncClient, ride_id: str) -> int:
    resp = await client.get(f"/api/v1/rides/{ride_id}")
    return resp.json()["seatsAvailable"]


# ── Tests ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


class TestRides:
    @pytest.mark.asyncio
    async def test_create_ride(self, client: AsyncClient):
        ride = await _post_ride(client)
        assert ride["id"]
        assert ride["seatsTotal"] == 2
        assert ride["seatsAvailable"] == 2
        assert ride["status"] == "scheduled"
        assert ride["isActive"] is True

    @pytest.mark.asyncio
    async def test_create_ride_validates_seats(self, client: AsyncClient):
        resp = await client.post("/api/v1/rides", json={**RIDE_BODY, "seatsTotal": 0})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_list_rides_by_driver(self, client: AsyncClient):
        await _post_ride(client)
        await _post_ride(client, driverId="driver-2")

        all_rides = (await client.get("/api/v1/rides")).json()
        mine = (await client.get("/api/v1/rides", params={"driverId": DRIVER})).json()

        assert len(all_rides) == 2
        assert [r["driverId"] for r in mine] == [DRIVER]

    @pytest.mark.asyncio
    async def test_get_ride_not_found(self, client: AsyncClient):
        resp = await client.get("/api/v1/rides/does-not-exist")
        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_status_lifecycle(self, client: AsyncClient):
        ride = await _post_ride(client)
        url = f"/api/v1/rides/{ride['id']}/status"

        resp = await client.patch(url, json={"status": "ongoing"}, headers={"x-user-id": DRIVER})
        assert resp.status_code == 200
        assert resp.json()["status"] == "ongoing"

        resp = await client.patch(url, json={"status": "completed"}, headers={"x-user-id": DRIVER})
        assert resp.json()["status"] == "completed"
        assert resp.json()["isActive"] is False

        resp = await client.patch(url, json={"status": "ongoing"}, headers={"x-user-id": DRIVER})
        assert resp.status_code == 409

        active = (await client.get("/api/v1/rides")).json()
        assert ride["id"] not in [r["id"] for r in active]

    @pytest.mark.asyncio
    async def test_status_requires_driver(self, client: AsyncClient):
        ride = await _post_ride(client)
        resp = await client.patch(
            f"/api/v1/rides/{ride['id']}/status",
            json={"status": "ongoing"},
            headers={"x-user-id": "pax-a"},
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_completed_ride_refuses_bookings(self, client: AsyncClient):
        ride = await _post_ride(client)
        await client.patch(
            f"/api/v1/rides/{ride['id']}/status",
            json={"status": "completed"},
            headers={"x-user-id": DRIVER},
        )
        resp = await _book(client, ride["id"], "pax-a")
        assert resp.status_code == 409
        assert resp.json()["error"] == "invalid_transition"

    @pytest.mark.asyncio
    async def test_update_location(self, client: AsyncClient):
        ride = await _post_ride(client)
        resp = await client.patch(
            f"/api/v1/rides/{ride['id']}/location",
            json={"lat": 12.95, "lng": 77.60},
            headers={"x-user-id": DRIVER},
        )
        assert resp.status_code == 200
        assert resp.json()["currentLat"] == 12.95
        assert resp.json()["currentLng"] == 77.60

    @pytest.mark.asyncio
    async def test_update_location_requires_identity(self, client: AsyncClient):
        ride = await _post_ride(client)
        resp = await client.patch(
            f"/api/v1/rides/{ride['id']}/location", json={"lat": 1.0, "lng": 1.0}
        )
        assert resp.status_code == 401


class TestCreateBooking:
    @pytest.mark.asyncio
    async def test_create_booking(self, client: AsyncClient):
        ride = await _post_ride(client)
        resp = await _book(client, ride["id"], "pax-a", 2)

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "pending"
        assert data["rideId"] == ride["id"]
        assert data["seatsBooked"] == 2
        assert await _seats_available(client, ride["id"]) == 0

    @pytest.mark.asyncio
    async def test_unknown_ride_is_404(self, client: AsyncClient):
        resp = await _book(client, "missing-ride", "pax-a")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_insufficient_seats_is_400(self, client: AsyncClient):
        ride = await _post_ride(client)
        resp = await _book(client, ride["id"], "pax-a", 3)

        assert resp.status_code == 400
        assert resp.json() == {
            "detail": "Only 2 seats available",
            "error": "capacity_exceeded",
        }

    @pytest.mark.asyncio
    async def test_zero_seats_is_rejected(self, client: AsyncClient):
        ride = await _post_ride(client)
        resp = await _book(client, ride["id"], "pax-a", 0)
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_seats_default_to_one(self, client: AsyncClient):
        ride = await _post_ride(client)
        resp = await client.post(
            "/api/v1/bookings", json={"rideId": ride["id"], "passengerId": "pax-a"}
        )
        assert resp.json()["seatsBooked"] == 1

    @pytest.mark.asyncio
    async def test_list_and_get_bookings(self, client: AsyncClient):
        ride = await _post_ride(client)
        first = (await _book(client, ride["id"], "pax-a")).json()
        await _book(client, ride["id"], "pax-b")

        by_pax = (await client.get("/api/v1/bookings", params={"passengerId": "pax-a"})).json()
        by_ride = (await client.get("/api/v1/bookings", params={"rideId": ride["id"]})).json()
        assert [b["id"] for b in by_pax] == [first["id"]]
        assert len(by_ride) == 2

        resp = await client.get(f"/api/v1/bookings/{first['id']}")
        assert resp.status_code == 200
        assert resp.json()["passengerId"] == "pax-a"

        assert (await client.get("/api/v1/bookings/missing")).status_code == 404

    @pytest.mark.asyncio
    async def test_driver_is_notified(self, client: AsyncClient, notifier):
        ride = await _post_ride(client)
        booking = (await _book(client, ride["id"], "pax-a")).json()

        assert notifier.channels("booking.created") == [
            f"booking:{booking['id']}",
            f"driver:{DRIVER}",
        ]


class TestUpdateBooking:
    @pytest.mark.asyncio
    async def test_missing_identity_is_401(self, client: AsyncClient):
        ride = await _post_ride(client)
        booking = (await _book(client, ride["id"], "pax-a")).json()

        resp = await _patch(client, booking["id"], "accepted", None)
        assert resp.status_code == 401
        assert resp.json()["error"] == "missing_identity"

    @pytest.mark.asyncio
    async def test_unknown_booking_is_404(self, client: AsyncClient):
        resp = await _patch(client, "missing", "accepted", DRIVER)
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_passenger_cannot_accept(self, client: AsyncClient):
        ride = await _post_ride(client)
        booking = (await _book(client, ride["id"], "pax-a")).json()

        resp = await _patch(client, booking["id"], "accepted", "pax-a")
        assert resp.status_code == 403
        assert resp.json()["error"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_accept_then_accept_again_conflicts(self, client: AsyncClient):
        ride = await _post_ride(client)
        booking = (await _book(client, ride["id"], "pax-a")).json()

        resp = await _patch(client, booking["id"], "accepted", DRIVER)
        assert resp.status_code == 200
        assert resp.json()["status"] == "accepted"

        resp = await _patch(client, booking["id"], "accepted", DRIVER)
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Booking not pending"
        assert await _seats_available(client, ride["id"]) == 1

    @pytest.mark.asyncio
    async def test_passenger_cancels_accepted_booking(self, client: AsyncClient, notifier):
        ride = await _post_ride(client)
        booking = (await _book(client, ride["id"], "pax-a", 2)).json()
        await _patch(client, booking["id"], "accepted", DRIVER)
        notifier.messages.clear()

        resp = await _patch(client, booking["id"], "cancelled", "pax-a")

        assert resp.status_code == 200
        assert resp.json()["status"] == "cancelled"
        assert await _seats_available(client, ride["id"]) == 2
        assert "passenger:pax-a" in notifier.channels("booking.updated")

    @pytest.mark.asyncio
    async def test_pending_is_not_a_target(self, client: AsyncClient):
        ride = await _post_ride(client)
        booking = (await _book(client, ride["id"], "pax-a")).json()

        resp = await _patch(client, booking["id"], "pending", DRIVER)
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_unknown_status_is_422(self, client: AsyncClient):
        ride = await _post_ride(client)
        booking = (await _book(client, ride["id"], "pax-a")).json()

        resp = await _patch(client, booking["id"], "confirmed", DRIVER)
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_full_ride_scenario(self, client: AsyncClient):
        ride = await _post_ride(client, seatsTotal=2)

        a = await _book(client, ride["id"], "pax-a", 2)
        assert a.status_code == 200
        assert await _seats_available(client, ride["id"]) == 0

        b = await _book(client, ride["id"], "pax-b", 1)
        assert b.status_code == 400
        assert await _seats_available(client, ride["id"]) == 0

        resp = await _patch(client, a.json()["id"], "rejected", DRIVER)
        assert resp.json()["status"] == "rejected"
        assert await _seats_available(client, ride["id"]) == 2

        b = await _book(client, ride["id"], "pax-b", 1)
        assert b.status_code == 200
        assert await _seats_available(client, ride["id"]) == 1

        audit = (await client.get(f"/api/v1/admin/rides/{ride['id']}/ledger")).json()
        assert audit["consistent"] is True
        assert audit["seatsHeld"] == 1


class TestDeleteRide:
    @pytest.mark.asyncio
    async def test_delete_cascades(self, client: AsyncClient, notifier):
        ride = await _post_ride(client, seatsTotal=3)
        pending = (await _book(client, ride["id"], "pax-a")).json()
        accepted = (await _book(client, ride["id"], "pax-b")).json()
        await _patch(client, accepted["id"], "accepted", DRIVER)

        resp = await client.delete(
            f"/api/v1/rides/{ride['id']}", headers={"x-user-id": DRIVER}
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert set(body["rejectedBookings"]) == {pending["id"], accepted["id"]}

        for booking_id in (pending["id"], accepted["id"]):
            got = (await client.get(f"/api/v1/bookings/{booking_id}")).json()
            assert got["status"] == "rejected"
        assert (await client.get(f"/api/v1/rides/{ride['id']}")).status_code == 404
        assert "passenger:pax-a" in notifier.channels()
        assert "passenger:pax-b" in notifier.channels()

    @pytest.mark.asyncio
    async def test_delete_unknown_ride_is_404(self, client: AsyncClient):
        resp = await client.delete("/api/v1/rides/missing", headers={"x-user-id": DRIVER})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_requires_identity(self, client: AsyncClient):
        ride = await _post_ride(client)
        resp = await client.delete(f"/api/v1/rides/{ride['id']}")
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_only_driver_can_delete(self, client: AsyncClient):
        ride = await _post_ride(client)
        resp = await client.delete(
            f"/api/v1/rides/{ride['id']}", headers={"x-user-id": "pax-a"}
        )
        assert resp.status_code == 403
        assert (await client.get(f"/api/v1/rides/{ride['id']}")).status_code == 200

    @pytest.mark.asyncio
    async def test_ledger_audit_unknown_ride(self, client: AsyncClient):
        resp = await client.get("/api/v1/admin/rides/missing/ledger")
        assert resp.status_code == 404
