from typing import AsyncGenerator
import ssl

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool

from app.core.config import DATABASE_URL, DB_TYPE

Base = declarative_base()


def _engine_options() -> dict:
    if DB_TYPE == "postgres":
        # SSL setup for hosted Postgres
        ssl_ctx = ssl.create_default_context()
        ssl_ctx.check_hostname = False
        ssl_ctx.verify_mode = ssl.CERT_NONE
        return {
            "pool_size": 5,
            "max_overflow": 10,
            "connect_args": {
                # Disable prepared statements (PgBouncer-safe)
                "statement_cache_size": 0,
                "prepared_statement_cache_size": 0,
                "server_settings": {"prepareThreshold": "0"},  # must be string!
                "ssl": ssl_ctx,
            },
        }
    return {"poolclass": NullPool}


engine = create_async_engine(DATABASE_URL, echo=False, future=True, **_engine_options())

AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


if DB_TYPE == "sqlite":
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)

import app.models  # noqa: E402,F401


# Auto-create tables (dev)
async def init_models():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
