from db.session import Base, engine
from db.models.payout_detail import PayoutDetail  # noqa: F401
from db.models.two_factor import TwoFactorCredential  # noqa: F401
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

async def initialize_database(bind: Optional[AsyncEngine] = None):
    """Create the payout and 2FA tables if they do not exist yet."""
    target = bind or engine
    if target is None:
        logger.info("No database configured; skipping table creation")
        return
    try:
        async with target.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating database tables: {e}")
        raise
