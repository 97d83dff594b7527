"""Seed demo data for the commission ledger.

Creates an admin, two associates, two projects and a handful of payments,
then prints bearer tokens for trying the API.
"""
import asyncio
from datetime import datetime, timezone
from decimal import Decimal
import uuid

from app.database import async_session_factory, engine, init_db
from app.core.security import create_access_token
from app.models import (
    User, UserType, Project, ProjectStatus, Payment, PaymentStatus, PaymentType,
)


async def seed():
    """Seed initial data."""
    await init_db(engine)

    async with async_session_factory() as db:
        try:
            print("Seeding data...")
            now = datetime.now(timezone.utc)

            # 1. Users
            print("Creating users...")
            admin = User(
                id=uuid.uuid4(),
                name="Ledger Admin",
                email="admin@spcity.in",
                phone="+919999999999",
                role=UserType.ADMIN.value,
                is_active=True,
            )
            asha = User(
                id=uuid.uuid4(),
                name="Asha Verma",
                email="asha@spcity.in",
                phone="+919812345670",
                role=UserType.ASSOCIATE.value,
                is_active=True,
            )
            ravi = User(
                id=uuid.uuid4(),
                name="Ravi Menon",
                email="ravi@spcity.in",
                phone="+919812345671",
                role=UserType.ASSOCIATE.value,
                is_active=True,
            )
            db.add_all([admin, asha, ravi])

            # 2. Projects
            print("Creating projects...")
            greens = Project(
                id=uuid.uuid4(),
                name="SP City Greens",
                location="Noida Sector 150",
                status=ProjectStatus.ACTIVE.value,
                commission_rate=Decimal("2"),
            )
            heights = Project(
                id=uuid.uuid4(),
                name="SP City Heights",
                location="Gurugram Sector 65",
                status=ProjectStatus.ACTIVE.value,
                commission_rate=Decimal("3.5"),
            )
            db.add_all([greens, heights])
            await db.flush()

            # 3. Payments
            print("Creating payments...")
            payments_data = [
                ("Karan Malhotra", greens, asha, Decimal("200000"), PaymentType.BOOKING, PaymentStatus.RECEIVED),
                ("Neha Kapoor", greens, asha, Decimal("150000"), PaymentType.INSTALLMENT, PaymentStatus.RECEIVED),
                ("Vikram Rao", greens, ravi, Decimal("50000"), PaymentType.TOKEN, PaymentStatus.PENDING),
                ("Priya Nair", heights, ravi, Decimal("300000"), PaymentType.BOOKING, PaymentStatus.RECEIVED),
                ("Arjun Singh", heights, asha, Decimal("75000"), PaymentType.INSTALLMENT, PaymentStatus.BOUNCED),
            ]
            for customer, project, associate, amount, payment_type, status in payments_data:
                db.add(Payment(
                    id=uuid.uuid4(),
                    customer_name=customer,
                    project_id=project.id,
                    associate_id=associate.id,
                    amount=amount,
                    payment_type=payment_type.value,
                    status=status.value,
                    received_date=now if status == PaymentStatus.RECEIVED else None,
                ))

            await db.commit()
            print("Seed data created successfully!")

            print("\n=== Bearer Tokens ===")
            for user in (admin, asha, ravi):
                print(f"{user.role:<10} {user.email:<20} {create_access_token(user.id)}")

            print("\n=== Projects ===")
            for project in (greens, heights):
                print(f"{project.name:<20} {project.id}")

            print("\n=== For scripts/e2e_commission_flow.py ===")
            print(f"export ADMIN_TOKEN={create_access_token(admin.id)}")
            print(f"export ASSOCIATE_TOKEN={create_access_token(asha.id)}")
            print(f"export PROJECT_ID={greens.id}")

        except Exception as e:
            await db.rollback()
            print(f"Error seeding data: {e}")
            raise

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
