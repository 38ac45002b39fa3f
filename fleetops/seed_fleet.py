"""
Database seeding script for reference fleet data.

Creates a few drivers, vehicles and clients so trips can be booked in a
fresh development database. Run after the database is up; running it twice
changes nothing.
"""

import asyncio
import logging

from sqlalchemy import select

from fleetops.app.core.observability import configure_logging
from fleetops.app.db.session import AsyncSessionLocal, Base, engine
from fleetops.app.models.fleet import Client, Driver, Vehicle
from fleetops.app.models.trip_enums import ClientType

logger = logging.getLogger("fleetops.seed")

DRIVERS = [
    {"name": "Amara Okafor", "contact": "+2348010000001"},
    {"name": "Tunde Bello", "contact": "+2348010000002"},
    {"name": "Grace Eze", "contact": "+2348010000003"},
]

VEHICLES = [
    {"make": "Toyota", "model": "Land Cruiser", "registration": "LND-101-AA"},
    {"make": "Mercedes-Benz", "model": "V-Class", "registration": "LND-202-BB"},
]

CLIENTS = [
    {"name": "Harbor Energy Ltd", "email": "travel@harbor.example", "client_type": ClientType.ORGANIZATION},
    {"name": "Ifeoma Nwosu", "email": "ifeoma@example.com", "client_type": ClientType.INDIVIDUAL},
]


async def seed_fleet(session_factory=AsyncSessionLocal) -> int:
    """
    Insert the reference drivers, vehicles and clients.

    Skips everything when a driver already exists.

    Returns:
        Number of rows created
    """
    async with session_factory() as db:
        existing = await db.execute(select(Driver.id).limit(1))
        if existing.scalar_one_or_none() is not None:
            logger.info("Fleet data already present, skipping seeding")
            return 0

        rows = (
            [Driver(**fields) for fields in DRIVERS]
            + [Vehicle(**fields) for fields in VEHICLES]
            + [Client(**fields) for fields in CLIENTS]
        )
        db.add_all(rows)
        await db.commit()

        logger.info(
            "Seeded fleet data",
            extra={"drivers": len(DRIVERS), "vehicles": len(VEHICLES), "clients": len(CLIENTS)}
        )
        return len(rows)


async def main():
    configure_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await seed_fleet()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
