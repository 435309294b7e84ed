#!/usr/bin/env python3
"""
Seed script to create a demo user and expert contacts
"""

import asyncio

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

DEMO_EMAIL = "demo@expertassist.ai"
DEMO_PASSWORD = "demo1234"

DEMO_EXPERTS = [
    {
        "name": "John Doe",
        "phone_number": "+15551234567",
        "expert_type": "lender",
        "company": "ABC Mortgage",
        "notes": "Handles pre-approvals for most of our buyers",
    },
    {
        "name": "Sarah Miller",
        "phone_number": "+15552345678",
        "expert_type": "inspector",
        "company": "Miller Home Inspections",
    },
    {
        "name": "David Chen",
        "phone_number": "+15553456789",
        "expert_type": "appraiser",
        "company": "Chen Appraisal Group",
    },
    {
        "name": "Maria Lopez",
        "phone_number": "+15554567890",
        "expert_type": "attorney",
        "company": "Lopez Real Estate Law",
        "notes": "Prefers email for document questions",
    },
    {
        "name": "Tom Becker",
        "phone_number": "+15555678901",
        "expert_type": "insurance_agent",
        "company": "Becker Insurance",
    },
]


async def seed_demo_data():
    """Seed demo data for development"""
    from expertassist.database import SessionLocal, engine, Base
    from expertassist.models.user import User
    from expertassist.models.expert import Expert, ExpertType

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if demo user already exists
        from sqlalchemy import select
        result = await db.execute(select(User).where(User.email == DEMO_EMAIL))
        existing = result.scalar_one_or_none()

        if existing:
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo user...")

        user = User(
            email=DEMO_EMAIL,
            hashed_password=pwd_context.hash(DEMO_PASSWORD),
            first_name="Jane",
            last_name="Smith",
            company="City Real Estate",
        )
        db.add(user)
        await db.flush()

        print(f"Created user: {user.full_name} (ID: {user.id})")

        for expert_data in DEMO_EXPERTS:
            db.add(
                Expert(
                    user_id=user.id,
                    name=expert_data["name"],
                    phone_number=expert_data["phone_number"],
                    expert_type=ExpertType(expert_data["expert_type"]),
                    company=expert_data.get("company"),
                    notes=expert_data.get("notes"),
                )
            )

        await db.commit()

        print(f"""
Demo data created successfully!

User:
  Email: {DEMO_EMAIL}
  Password: {DEMO_PASSWORD}

Experts: {len(DEMO_EXPERTS)} created

Calls are simulated unless valid Twilio credentials are configured
and DEMO_MODE is off.
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
