"""
Development Database Seeding

Creates the schema and loads a demo catalogue, discount codes and an admin
account.

Usage:
    python -m storefront.ingestion.seed_db
"""

import asyncio
import os

import structlog

from storefront.config.logging import configure_logging
from storefront.data import DiscountCodeGenerator, ProductGenerator
from storefront.database.connection import close_database, create_schema, get_db, init_database
from storefront.database.models import User, UserRole
from storefront.errors import DuplicateDiscountCodeError
from storefront.repositories import UserRepository
from storefront.services import DiscountService, ProductService
from storefront.services.auth import hash_password

logger = structlog.get_logger(__name__)

PRODUCT_COUNT = int(os.getenv("SEED_PRODUCT_COUNT", 50))
ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "admin123")


async def seed_products(count: int = PRODUCT_COUNT) -> int:
    logger.info("Seeding products...", count=count)
    async with get_db() as db:
        service = ProductService(db)
        for request in ProductGenerator().generate(count):
            await service.create(request)
    return count


async def seed_discount_codes() -> int:
    logger.info("Seeding discount codes...")
    created = 0
    for request in DiscountCodeGenerator().generate():
        try:
            async with get_db() as db:
                await DiscountService(db).create(request)
            created += 1
        except DuplicateDiscountCodeError:
            logger.info("Discount code already present", code=request.code)
    return created


async def seed_admin(email: str = ADMIN_EMAIL, password: str = ADMIN_PASSWORD) -> bool:
    async with get_db() as db:
        users = UserRepository(db)
        if await users.get_by_email(email) is not None:
            logger.info("Admin user already present", email=email)
            return False
        await users.add(User(
            email=email,
            name="Administrator",
            password_hash=hash_password(password),
            role=UserRole.ADMIN,
        ))
    logger.info("Admin user created", email=email)
    return True


async def main():
    configure_logging()
    logger.info("Starting database seeding...")
    await init_database()
    try:
        await create_schema()
        await seed_products()
        await seed_discount_codes()
        await seed_admin()
        logger.info("Database seeding completed successfully!")
    finally:
        await close_database()


def run():
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
