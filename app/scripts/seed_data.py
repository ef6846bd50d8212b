# app/scripts/seed_data.py
import asyncio
import logging
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import AsyncSessionLocal, init_models
from app.models.customer_models import Customer
from app.models.distributor_models import Distributor
from app.models.product_models import Product

logger = logging.getLogger(__name__)

CUSTOMERS = [
    {"name": "Alice Perera", "email": "alice@example.com", "phone": "0771234567", "address": "12 Galle Road, Colombo"},
    {"name": "Bimal Silva", "email": "bimal@example.com", "phone": "0712345678", "address": "45 Kandy Road, Kadawatha"},
    {"name": "Chathuri Fernando", "email": "chathuri@example.com", "phone": "0759876543", "address": "7 Lake Drive, Kandy"},
]

DISTRIBUTORS = [
    {"company_name": "TechWorld Distributors", "contact_person": "John Smith", "email": "sales@techworld.example.com", "phone": "0112345678"},
    {"company_name": "Gadget Central", "contact_person": "Sarah Johnson", "email": "orders@gadgetcentral.example.com", "phone": "0113456789"},
    {"company_name": "ElectroMart Supplies", "contact_person": "Mike Wilson", "email": "info@electromart.example.com", "phone": "0114567890"},
]

PRODUCTS = [
    {"name": "iPhone 15 Pro", "brand": "Apple", "model": "A3102", "price": Decimal("999.00"), "description": "6.1-inch smartphone, 256GB"},
    {"name": "Galaxy S24", "brand": "Samsung", "model": "SM-S921", "price": Decimal("799.00"), "description": "6.2-inch smartphone, 128GB"},
    {"name": "MacBook Air M3", "brand": "Apple", "model": "MXCR3", "price": Decimal("1099.00"), "description": "13-inch laptop, 8GB RAM"},
    {"name": "XPS 13", "brand": "Dell", "model": "9340", "price": Decimal("1199.00"), "description": "13.4-inch laptop, 16GB RAM"},
    {"name": "WH-1000XM5", "brand": "Sony", "model": "WH1000XM5", "price": Decimal("349.00"), "description": "Noise cancelling headphones"},
    {"name": "iPad Air", "brand": "Apple", "model": "MUWD3", "price": Decimal("599.00"), "description": "11-inch tablet, 128GB"},
]


async def seed_database(session: AsyncSession) -> bool:
    """Insert the demo parties and catalog. Returns False when data already exists."""
    existing = (await session.execute(select(func.count(Product.id)))).scalar() or 0
    if existing:
        logger.info("Seed skipped, %s products already present", existing)
        return False

    session.add_all([Customer(**row) for row in CUSTOMERS])
    session.add_all([Distributor(**row) for row in DISTRIBUTORS])
    session.add_all([Product(**row) for row in PRODUCTS])
    await session.commit()
    logger.info(
        "Seeded %s customers, %s distributors, %s products", len(CUSTOMERS), len(DISTRIBUTORS), len(PRODUCTS)
    )
    return True


async def main():
    await init_models()
    async with AsyncSessionLocal() as session:
        created = await seed_database(session)
    print("Seed data created!" if created else "Database already seeded.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
