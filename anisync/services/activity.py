"""
Activity log sink. Writes are best effort; a failed write is logged only.
"""

from sqlalchemy.exc import SQLAlchemyError

from ..core.logging import get_logger
from ..db.session import Database
from ..db.tables import ActivityRow

logger = get_logger(__name__)


class ActivityLog:
    def __init__(self, database: Database):
        self.database = database

    async def record(self, type: str, message: str):
        try:
            async with self.database.session() as session:
                session.add(ActivityRow(type=type, content=message))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("activity_record_failed", type=type, error=str(e))
            return
        logger.info("activity_recorded", type=type, content=message)

