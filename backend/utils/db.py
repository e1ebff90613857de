from sqlalchemy.exc import SQLAlchemyError
from core.errors import StoreFailed


async def safe_commit(session, client_error_message: str = "Data store request failed"):
    try:
        await session.commit()
    except SQLAlchemyError as e:
        try:
            await session.rollback()
        finally:
            pass
        raise StoreFailed(client_error_message, details=str(e.__class__.__name__)) from e
