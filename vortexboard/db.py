import argparse
import asyncio
from collections.abc import AsyncGenerator
from datetime import timedelta

from sqlalchemy import and_, delete, inspect, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from vortexboard import models  # noqa: F401
from vortexboard.config import settings
from vortexboard.models.activity_log import ActivityLog
from vortexboard.models.base import Base, utc_now
from vortexboard.models.notification import Notification
from vortexboard.utils.logger import setup_logger

logger = setup_logger("db")


def build_engine(database_url: str, echo: bool = False):
    """Create the async engine. Pool sizing only applies to PostgreSQL."""
    if database_url.startswith("sqlite"):
        engine_kwargs = {"echo": echo}
        if ":memory:" in database_url:
            engine_kwargs["poolclass"] = StaticPool
        return create_async_engine(database_url, **engine_kwargs)

    return create_async_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=20,
        max_overflow=30,
        pool_timeout=60,
        pool_recycle=300,
        echo=echo,
        connect_args={"timeout": 30},
    )


logger.debug(f"Application DB URL: {settings.app_database_url}")
app_engine = build_engine(settings.app_database_url, echo=settings.db_echo)

AppAsyncSessionLocal = async_sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=app_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# --- Dependency for FastAPI ---
async def get_app_db() -> AsyncGenerator[AsyncSession, None]:
    async with AppAsyncSessionLocal() as session:
        yield session


# --- Function to create tables ---
async def init_db(engine=None):
    engine = engine or app_engine
    if not Base.metadata.tables:
        logger.warning("Base.metadata.tables is EMPTY! No tables will be created.")
    else:
        logger.debug(
            f"Tables registered in Base.metadata: {list(Base.metadata.tables.keys())}"
        )

    async with engine.begin() as conn:
        if settings.schema_name and not settings.is_sqlite:
            await conn.execute(
                text(f"CREATE SCHEMA IF NOT EXISTS {settings.schema_name}")
            )
        await conn.run_sync(Base.metadata.create_all)

    logger.info(
        f"Database schema initialized (schema: {settings.schema_name or '<default>'})."
    )


async def close_db():
    """Closes database connections."""
    logger.info("Closing database connections.")
    if app_engine:
        await app_engine.dispose()
    logger.info("Database connections closed.")


async def list_tables(engine=None) -> list[str]:
    """Lists the application tables that exist in the database."""
    engine = engine or app_engine
    async with engine.connect() as conn:
        table_names = await conn.run_sync(
            lambda sync_conn: inspect(sync_conn).get_table_names(
                schema=settings.schema_name
            )
        )

    if table_names:
        logger.debug(f"Tables found: {table_names}")
    else:
        logger.debug("No tables found or schema does not exist.")
    return sorted(table_names)


async def reset_db(engine=None):
    engine = engine or app_engine
    logger.warning(
        "Attempting to reset the application database. THIS IS A DESTRUCTIVE OPERATION."
    )
    async with engine.begin() as conn:
        if settings.schema_name and not settings.is_sqlite:
            await conn.execute(
                text(f"DROP SCHEMA IF EXISTS {settings.schema_name} CASCADE")
            )
            logger.info(f"Schema '{settings.schema_name}' dropped.")
        else:
            await conn.run_sync(Base.metadata.drop_all)
            logger.info("All application tables dropped.")

    await init_db(engine)
    logger.info("Application database has been reset and re-initialized.")


async def check_db_connection(engine_to_check=None, db_name="Application DB"):
    """Performs a simple query to check actual DB connectivity."""
    if engine_to_check is None:
        engine_to_check = app_engine

    session_maker = async_sessionmaker(
        bind=engine_to_check,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with session_maker() as session:
        try:
            result = await session.execute(text("SELECT 1"))
            if result.scalar_one() == 1:
                logger.info(
                    f"Successfully connected to {db_name} and executed a test query."
                )
                return True
            logger.error(f"Test query to {db_name} did not return 1.")
            raise RuntimeError(f"Test query to {db_name} returned an unexpected result.")
        except Exception as e:
            logger.error(
                f"Failed to execute test query on {db_name}: {e}", exc_info=True
            )
            raise RuntimeError(
                f"Database connectivity check failed for {db_name}."
            ) from e


async def purge_expired_records(
    session_factory=None, now=None
) -> dict[str, int]:
    """
    Delete activity entries past their retention window and read
    notifications whose read_at is older than the notification window.

    Returns the number of rows removed per table.
    """
    session_factory = session_factory or AppAsyncSessionLocal
    now = now or utc_now()
    activity_cutoff = now - timedelta(days=settings.activity_retention_days)
    notification_cutoff = now - timedelta(
        days=settings.read_notification_retention_days
    )

    async with session_factory() as session:
        activity_result = await session.execute(
            delete(ActivityLog).where(ActivityLog.timestamp < activity_cutoff)
        )
        notification_result = await session.execute(
            delete(Notification).where(
                and_(
                    Notification.is_read.is_(True),
                    Notification.read_at < notification_cutoff,
                )
            )
        )
        await session.commit()

    removed = {
        "activity_logs": activity_result.rowcount or 0,
        "notifications": notification_result.rowcount or 0,
    }
    logger.info(
        f"Purged {removed['activity_logs']} activity entries and "
        f"{removed['notifications']} read notifications."
    )
    return removed


async def _run_reminders():
    # Imported here: the services layer depends on this module.
    from vortexboard.services.email import build_email_service
    from vortexboard.services.reminders import send_due_reminders

    return await send_due_reminders(build_email_service(settings))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="VortexBoard Database Utility"
    )
    parser.add_argument(
        "action",
        choices=["init", "reset", "list-tables", "purge", "remind"],
        help="'init' to create missing tables, "
        "'reset' to drop and recreate all tables, "
        "'list-tables' to show existing tables, "
        "'purge' to delete expired activity entries and read notifications, "
        "'remind' to send due-soon and overdue task reminders.",
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Skip the confirmation prompt for 'reset'.",
    )
    args = parser.parse_args()

    if args.action == "init":
        asyncio.run(init_db())
    elif args.action == "reset":
        confirm = "yes" if args.yes else input(
            "WARNING: This will delete all application data. Are you sure? (yes/no): "
        )
        if confirm.lower() == "yes":
            asyncio.run(reset_db())
        else:
            logger.info("Database reset cancelled by user.")
    elif args.action == "list-tables":
        for name in asyncio.run(list_tables()):
            print(name)
    elif args.action == "purge":
        print(asyncio.run(purge_expired_records()))
    elif args.action == "remind":
        print(asyncio.run(_run_reminders()))
    logger.info("Database utility script finished.")
