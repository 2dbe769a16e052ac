from datetime import timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from memwatch.core.utils import bytes_to_mb

DEFAULT_POLL_INTERVAL = timedelta(seconds=30)
DEFAULT_RESERVE_MEM_MB = 1024


class Mode(str, Enum):
    """Whether this instance persists samples or only serves them"""
    PASSIVE_SERVE = "passive-serve"
    COLLECT_AND_SERVE = "collect-and-serve"

    @classmethod
    def from_raw(cls, value: Optional[str]) -> "Mode":
        # "db" is the value older ConfigMaps use for collection
        if (value or "").strip() in ("collect-and-serve", "db"):
            return cls.COLLECT_AND_SERVE
        return cls.PASSIVE_SERVE


class OperatingConfig(BaseModel):
    """Operating parameters read from the ConfigMap; superseded by the next read."""
    mode: Mode = Mode.PASSIVE_SERVE
    host: str = ""
    port: str = ""
    user: str = ""
    password: str = ""
    database: str = ""
    poll_interval: timedelta = DEFAULT_POLL_INTERVAL
    reserve_mem_bytes: int = DEFAULT_RESERVE_MEM_MB * 1024 * 1024

    class Config:
        frozen = True

    @property
    def collects(self) -> bool:
        return self.mode is Mode.COLLECT_AND_SERVE

    @property
    def reserve_mem_mb(self) -> int:
        return bytes_to_mb(self.reserve_mem_bytes)

    def __repr__(self):
        return (
            f"<OperatingConfig(mode={self.mode.value}, "
            f"db={self.user}@{self.host}:{self.port}/{self.database}, "
            f"interval={self.poll_interval.total_seconds()}s, "
            f"reserve_mb={self.reserve_mem_mb})>"
        )
