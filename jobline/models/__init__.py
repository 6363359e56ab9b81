from sqlmodel import SQLModel
from jobline.db.session import engine
from . import company, user, candidate, client, broker, fee_template, application, document, ledger, lifecycle_history # Import all models

async def create_db_and_tables():
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
