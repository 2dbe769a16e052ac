"""Database utilities to help with connection management and retries."""
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, TimeoutError

from memwatch.core.logging import db_logger

# Retry transient connection failures; anything else surfaces immediately
db_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((OperationalError, TimeoutError)),
    reraise=True,
    before_sleep=lambda retry_state: db_logger.warning(
        f"Database operation failed, retrying ({retry_state.attempt_number}/3): "
        f"{retry_state.outcome.exception()}"
    )
)


def get_connection_status(engine: Engine):
    """Return database connection pool statistics."""
    pool = engine.pool
    if not hasattr(pool, "checkedout"):
        return {"status": "unknown"}
    return {
        "pool_size": pool.size(),
        "checkedin": pool.checkedin(),
        "checkedout": pool.checkedout(),
        "overflow": pool.overflow(),
        "status": "healthy" if pool.checkedout() < pool.size() else "busy"
    }
