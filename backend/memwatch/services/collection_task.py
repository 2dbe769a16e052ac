import asyncio
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from memwatch.core.exceptions import ConfigFetchError, PersistenceError, UpstreamListError
from memwatch.core.logging import cluster_logger
from memwatch.schemas.operating_config import OperatingConfig
from memwatch.services.config_reader import ConfigReader
from memwatch.services.persistence import PersistenceWriter
from memwatch.services.sampler import NodeAvailabilitySampler


class CollectionState(str, Enum):
    IDLE = "idle"
    SAMPLING = "sampling"
    WRITING = "writing"
    SLEEPING = "sleeping"


class CollectionTask:
    """Background task that samples node memory and appends a row every interval."""

    def __init__(
        self,
        config_reader: ConfigReader,
        sampler: NodeAvailabilitySampler,
        writer: PersistenceWriter,
        initial_config: OperatingConfig,
    ):
        self.config_reader = config_reader
        self.sampler = sampler
        self.writer = writer
        self._last_config = initial_config
        self._interval: timedelta = initial_config.poll_interval
        self._task: Optional[asyncio.Task] = None
        self._running = False
        self._sleep = asyncio.sleep

        self.state = CollectionState.IDLE
        self._total_cycles = 0
        self._failed_cycles = 0
        self._total_writes = 0
        self._last_write_time: Optional[datetime] = None
        self._last_summary: Optional[str] = None

    async def start(self):
        """Start the background collection task."""
        if self._running:
            cluster_logger.warning("Node memory collection is already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._loop())
        cluster_logger.info(
            f"Started node memory collection with "
            f"{self._interval.total_seconds():g}s intervals"
        )

    async def stop(self):
        """Stop the background collection task."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        self.state = CollectionState.IDLE
        cluster_logger.info("Stopped node memory collection")

    def get_status(self) -> dict:
        last_write = self._last_write_time.isoformat() if self._last_write_time else None
        return {
            "current_status": "active" if self._running else "inactive",
            "state": self.state.value,
            "mode": self._last_config.mode.value,
            "interval_seconds": self._interval.total_seconds(),
            "total_cycles": self._total_cycles,
            "failed_cycles": self._failed_cycles,
            "total_writes": self._total_writes,
            "last_write": last_write,
            "last_mem_info": self._last_summary,
        }

    def run_cycle(self) -> timedelta:
        """
        Run one cycle: re-read config, sample, write.

        Failures are logged and never raised. A failed config read reuses the
        last good config for this cycle only.

        Returns:
            How long to sleep before the next cycle
        """
        self._total_cycles += 1
        self.state = CollectionState.SAMPLING

        try:
            cfg = self.config_reader.read()
            self._last_config = cfg
        except ConfigFetchError as e:
            cluster_logger.error(f"Error reloading config: {e}, using old config")
            cfg = self._last_config
        self._interval = cfg.poll_interval

        if not cfg.collects:
            cluster_logger.info(f"Mode is {cfg.mode.value}, skipping collection this cycle")
            self.state = CollectionState.SLEEPING
            return self._interval

        try:
            samples = self.sampler.sample()
            self.state = CollectionState.WRITING
            self._last_summary = self.writer.append(samples, cfg)
            self._total_writes += 1
            self._last_write_time = datetime.now(timezone.utc)
        except UpstreamListError as e:
            self._failed_cycles += 1
            cluster_logger.error(f"Error collecting metrics: {e}")
        except PersistenceError as e:
            self._failed_cycles += 1
            cluster_logger.error(f"Error storing metrics: {e}")

        self.state = CollectionState.SLEEPING
        return self._interval

    async def _loop(self):
        """Main collection loop."""
        while self._running:
            try:
                interval = await asyncio.to_thread(self.run_cycle)
            except asyncio.CancelledError:
                break
            except Exception as e:
                self._failed_cycles += 1
                cluster_logger.error(f"Error in node memory collection loop: {str(e)}")
                interval = self._interval

            self.state = CollectionState.SLEEPING
            try:
                await self._sleep(interval.total_seconds())
            except asyncio.CancelledError:
                break
