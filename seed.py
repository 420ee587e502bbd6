"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 6 sample rides around campus (posted by 3 drivers)
  - 8 sample bookings in every status, placed through the seat ledger so
    seat counts stay consistent
"""

import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import text

from unipool.domain.enums import BookingStatus
from unipool.infrastructure.database import async_session_factory, engine
from unipool.infrastructure.notifier import NullNotifier
from unipool.services.rides import RideService
from unipool.services.seat_ledger import SeatLedger

# Main campus gate (approx)
CAMPUS_LAT, CAMPUS_LNG = 12.9716, 77.5946

DRIVERS = ["driver-aarav", "driver-priya", "driver-rohan"]
PASSENGERS = ["pax-sneha", "pax-vikram", "pax-ananya", "pax-karan", "pax-meera"]

RIDES = [
    {"driver": 0, "dest": ("City Railway Station", 12.9784, 77.5697), "hours": 2, "seats": 3, "cost": 60},
    {"driver": 0, "dest": ("Airport Terminal 1", 13.1986, 77.7066), "hours": 20, "seats": 4, "cost": 250},
    {"driver": 1, "dest": ("Tech Park Gate 2", 12.9352, 77.6245), "hours": 1, "seats": 2, "cost": 40},
    {"driver": 1, "dest": ("Central Mall", 12.9718, 77.6412), "hours": 5, "seats": 3, "cost": 50},
    {"driver": 2, "dest": ("Hostel Block C", 12.9901, 77.5710), "hours": 3, "seats": 1, "cost": 20},
    {"driver": 2, "dest": ("Bus Depot", 12.9569, 77.5680), "hours": 26, "seats": 4, "cost": 35},
]

# (ride index, passenger index, seats, final status)
BOOKINGS = [
    (0, 0, 1, BookingStatus.ACCEPTED),
    (0, 1, 1, BookingStatus.PENDING),
    (1, 2, 2, BookingStatus.ACCEPTED),
    (1, 3, 1, BookingStatus.REJECTED),
    (2, 4, 2, BookingStatus.PENDING),
    (3, 0, 1, BookingStatus.CANCELLED),
    (3, 2, 2, BookingStatus.ACCEPTED),
    (5, 1, 1, BookingStatus.PENDING),
]


async def seed():
    notifier = NullNotifier()
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM rides"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        rides_service = RideService(session, notifier)
        ledger = SeatLedger(session, notifier)
        now = datetime.now(timezone.utc)

        # ── Rides ─────────────────────────────────────────────────────
        ride_models = []
        for r in RIDES:
            address, lat, lng = r["dest"]
            ride = await rides_service.create_ride(
                driver_id=DRIVERS[r["driver"]],
                source_lat=CAMPUS_LAT,
                source_lng=CAMPUS_LNG,
                source_address="Main Campus Gate",
                dest_lat=lat,
                dest_lng=lng,
                dest_address=address,
                departure_time=now + timedelta(hours=r["hours"]),
                seats_total=r["seats"],
                cost_per_seat=r["cost"],
            )
            ride_models.append(ride)
        print(f"  Created {len(ride_models)} rides")

        # ── Bookings ──────────────────────────────────────────────────
        for ride_idx, pax_idx, seats, final in BOOKINGS:
            ride = ride_models[ride_idx]
            booking = await ledger.create_booking(ride.id, PASSENGERS[pax_idx], seats)
            if final == BookingStatus.CANCELLED:
                await ledger.transition_booking(booking.id, PASSENGERS[pax_idx], final)
            elif final != BookingStatus.PENDING:
                await ledger.transition_booking(booking.id, ride.driver_id, final)
        print(f"  Created {len(BOOKINGS)} bookings")

        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
