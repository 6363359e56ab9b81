import asyncio
import sys
from sqlmodel import select
from jobline.db.session import async_session_factory
from jobline.models import create_db_and_tables
from jobline.models.company import Company
from jobline.models.user import User, UserRole
from jobline.core.security import get_password_hash

async def create_admin_user(company_name: str, email: str, password: str):
    """Seed an agency and its first Super Admin. Safe to re-run."""
    await create_db_and_tables()
    email = email.lower()

    async with async_session_factory() as session:
        # Check if user already exists
        result = await session.exec(select(User).where(User.email == email))
        user = result.first()

        if user:
            print(f"User with email {email} already exists.")
            if user.role != UserRole.SUPER_ADMIN:
                user.role = UserRole.SUPER_ADMIN
                session.add(user)
                await session.commit()
                print(f"User {email} updated to Super Admin.")
            return

        result = await session.exec(select(Company).where(Company.name == company_name))
        company = result.first()
        if not company:
            company = Company(name=company_name)
            session.add(company)
            await session.flush()
            print(f"Company '{company_name}' created.")

        new_superuser = User(
            email=email,
            hashed_password=get_password_hash(password),
            is_active=True,
            role=UserRole.SUPER_ADMIN,
            company_id=company.id,
        )
        session.add(new_superuser)
        await session.commit()
        print(f"Super Admin '{email}' created for {company_name}.")

if __name__ == "__main__":
    if sys.platform == 'win32':
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

    company_name = input("Enter agency name: ")
    admin_email = input("Enter Super Admin email: ")
    admin_password = input("Enter Super Admin password: ")

    asyncio.run(create_admin_user(company_name, admin_email, admin_password))
    print("Script finished.")
