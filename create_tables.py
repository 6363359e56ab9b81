import asyncio
from jobline.models import create_db_and_tables

async def create_tables():
    print("Creating tables...")
    await create_db_and_tables()
    print("Tables created.")

if __name__ == "__main__":
    asyncio.run(create_tables())
