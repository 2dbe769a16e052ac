from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.engine import Engine
from typing import Any, Dict, Optional

from memwatch import __version__
from memwatch.api.deps import get_collection_task, get_engine
from memwatch.db.utils import get_connection_status
from memwatch.services.collection_task import CollectionTask

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    collecting: bool
    database_connection: Optional[bool]
    version: str
    details: Dict[str, Any] = {}


@router.get("/health", response_model=HealthResponse)
def health_check(
    engine: Optional[Engine] = Depends(get_engine),
    task: Optional[CollectionTask] = Depends(get_collection_task),
):
    """
    Liveness check. Tests the database connection when this instance
    collects; passive instances have no database.
    """
    database_ok = None
    details: Dict[str, Any] = {}

    if engine is not None:
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            database_ok = True
            details["pool"] = get_connection_status(engine)
        except Exception as e:
            database_ok = False
            details["database_error"] = str(e)

    return HealthResponse(
        status="error" if database_ok is False else "ok",
        collecting=task is not None,
        database_connection=database_ok,
        version=__version__,
        details=details,
    )


@router.get("/collector/status")
def collector_status(task: Optional[CollectionTask] = Depends(get_collection_task)):
    """State and counters of the background collection loop."""
    if task is None:
        return {"current_status": "disabled"}
    return task.get_status()
