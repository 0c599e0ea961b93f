"""
Database seeding script for demo students and trips.

Creates three verified students at Thapar and posts a few upcoming trips.
Run this script after database is set up but before first use.
"""

import asyncio
import sys
from datetime import time, timedelta
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from bunkride.app.core import clock
from bunkride.app.core.security import get_password_hash, derive_college
from bunkride.app.db.session import AsyncSessionLocal, engine, Base
from bunkride.app.domain.trips.workflow import TripWorkflow
from bunkride.app.models.enums import TransportMode
from bunkride.app.models.user import User
from sqlalchemy import select

DEMO_STUDENTS = [
    ("priya@thapar.edu", "Priya Singh", "9812300001", "3rd"),
    ("rahul@thapar.edu", "Rahul Kumar", "9812300002", "2nd"),
    ("ananya@thapar.edu", "Ananya Gupta", "9812300003", "4th"),
]

# (creator index, from, to, days ahead, departure, mode, seats, total cost)
DEMO_TRIPS = [
    (0, "Patiala", "Delhi", 4, time(9, 0), TransportMode.CAR, 4, 3200),
    (1, "Chandigarh", "Mumbai", 5, time(6, 0), TransportMode.FLIGHT, 3, 15000),
    (2, "Patiala", "Amritsar", 7, time(14, 30), TransportMode.BUS, 2, 1200),
]


async def seed_demo_data():
    """
    Seed demo students (password: demo123) and their trips.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting demo seeding...")

        result = await db.execute(select(User).where(User.email == DEMO_STUDENTS[0][0]))
        if result.scalar_one_or_none():
            print("ℹ️  Demo students already exist, skipping seeding")
            return

        students = []
        for email, name, phone, year in DEMO_STUDENTS:
            student = User(
                email=email,
                name=name,
                hashed_password=get_password_hash("demo123"),
                college=derive_college(email),
                phone=phone,
                year=year,
                is_active=True,
                email_verified=True,
            )
            db.add(student)
            students.append(student)
            print(f"✅ Created student {email}")
        await db.commit()

        today = clock.now().date()
        for creator, route_from, route_to, days, departure, mode, seats, cost in DEMO_TRIPS:
            trip = await TripWorkflow.create_trip(
                db,
                students[creator],
                route_from=route_from,
                route_to=route_to,
                trip_date=today + timedelta(days=days),
                trip_time=departure,
                transport_mode=mode,
                total_seats=seats,
                total_cost=cost,
            )
            print(f"✅ Posted trip {trip.id}: {route_from} -> {route_to} ({trip.price_per_person}/person)")

        print("\n🎉 Demo seeding completed successfully!")
        print("\nLog in as any of:")
        for email, *_ in DEMO_STUDENTS:
            print(f"  - {email} / demo123")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
