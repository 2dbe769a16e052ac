from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from memwatch.core.exceptions import PersistenceError
from memwatch.core.logging import db_logger
from memwatch.db.models import NodeResource, NodeResourceTotals
from memwatch.db.session import close_session
from memwatch.db.utils import db_retry
from memwatch.schemas.node_memory import NodeSample
from memwatch.schemas.operating_config import OperatingConfig
from memwatch.services.mem_info import format_mem_info, summarize_totals

ROW_SHAPES = ("mem_info", "totals")


class PersistenceWriter:
    """Appends one row per collection cycle. Rows are never updated or deleted."""

    def __init__(self, session_factory: sessionmaker, row_shape: str = "mem_info"):
        if row_shape not in ROW_SHAPES:
            raise ValueError(f"Unknown row shape {row_shape!r}, expected one of {ROW_SHAPES}")
        self.session_factory = session_factory
        self.row_shape = row_shape

    def append(self, samples: Sequence[NodeSample], config: OperatingConfig) -> str:
        """
        Write the cycle's row in the configured shape.

        Returns:
            A one-line summary of what was written

        Raises:
            PersistenceError: if the insert fails after retries
        """
        if self.row_shape == "totals":
            totals = summarize_totals(samples, config.reserve_mem_bytes)
            row = NodeResourceTotals(
                total_mem=totals.total_memory_bytes,
                reserve_mem=totals.reserve_mem_bytes,
            )
            summary = f"total={totals.total_memory_bytes} reserve={totals.reserve_mem_bytes}"
        else:
            summary = format_mem_info(samples, config.reserve_mem_bytes)
            row = NodeResource(mem_info=summary)

        try:
            self._insert(row)
        except SQLAlchemyError as e:
            db_logger.error(f"Error inserting metrics to database: {e}, data: {summary}")
            raise PersistenceError(summary, str(e)) from e

        db_logger.info(f"Successfully inserted metrics to database: {summary}")
        return summary

    @db_retry
    def _insert(self, row) -> None:
        db = self.session_factory()
        try:
            db.add(row)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            close_session(db)
