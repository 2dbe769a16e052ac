import asyncio
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from memwatch.core.exceptions import ConfigFetchError, PersistenceError
from memwatch.schemas.operating_config import Mode, OperatingConfig
from memwatch.services.collection_task import CollectionState, CollectionTask
from memwatch.services.sampler import NodeAvailabilitySampler

from conftest import MIB

COLLECT = OperatingConfig(
    mode="collect-and-serve", poll_interval=timedelta(seconds=30), reserve_mem_bytes=512 * MIB
)


@pytest.fixture
def reader():
    reader = MagicMock()
    reader.read.return_value = COLLECT
    return reader


@pytest.fixture
def writer():
    writer = MagicMock()
    writer.append.return_value = "2048_1024_512"
    return writer


@pytest.fixture
def task(reader, fake_cluster, writer):
    return CollectionTask(reader, NodeAvailabilitySampler(fake_cluster), writer, COLLECT)


class TestRunCycle:

    def test_samples_and_writes(self, task, writer):
        interval = task.run_cycle()

        assert interval == timedelta(seconds=30)
        samples, cfg = writer.append.call_args.args
        assert [s.identity for s in samples] == ["n1", "n2"]
        assert cfg is COLLECT
        status = task.get_status()
        assert status["total_writes"] == 1
        assert status["last_mem_info"] == "2048_1024_512"
        assert status["state"] == CollectionState.SLEEPING.value

    def test_new_interval_applies_from_next_cycle(self, task, reader):
        reader.read.return_value = COLLECT.model_copy(update={"poll_interval": timedelta(seconds=5)})

        assert task.run_cycle() == timedelta(seconds=5)

    def test_config_failure_uses_last_good_config(self, task, reader, writer):
        changed = COLLECT.model_copy(update={"poll_interval": timedelta(seconds=10)})
        reader.read.side_effect = [changed, ConfigFetchError("monitor", "mysql-config", "timeout"), COLLECT]

        assert task.run_cycle() == timedelta(seconds=10)
        assert task.run_cycle() == timedelta(seconds=10)
        assert writer.append.call_args.args[1] is changed
        assert task.run_cycle() == timedelta(seconds=30)
        assert writer.append.call_count == 3

    def test_passive_mode_skips_collection(self, reader, writer):
        sampler = MagicMock()
        reader.read.return_value = COLLECT.model_copy(update={"mode": Mode.PASSIVE_SERVE})
        task = CollectionTask(reader, sampler, writer, COLLECT)

        task.run_cycle()

        sampler.sample.assert_not_called()
        writer.append.assert_not_called()
        assert task.get_status()["mode"] == "passive-serve"

    def test_sampler_failure_skips_write(self, task, fake_cluster, writer):
        fake_cluster.usage_error = "metrics-server unavailable"

        assert task.run_cycle() == timedelta(seconds=30)
        writer.append.assert_not_called()
        assert task.get_status()["failed_cycles"] == 1

    def test_write_failure_is_not_raised(self, task, writer):
        writer.append.side_effect = PersistenceError("2048_1024_512", "deadlock")

        assert task.run_cycle() == timedelta(seconds=30)
        assert task.get_status()["failed_cycles"] == 1
        assert task.get_status()["total_writes"] == 0


class TestLoop:

    def test_write_failure_does_not_stop_loop(self, task, writer):
        writer.append.side_effect = PersistenceError("2048_1024_512", "disk full")
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)
            if len(sleeps) == 3:
                task._running = False

        task._sleep = fake_sleep
        task._running = True
        asyncio.run(task._loop())

        assert writer.append.call_count == 3
        assert sleeps == [30.0, 30.0, 30.0]

    def test_unexpected_error_does_not_stop_loop(self, task, reader):
        reader.read.side_effect = [RuntimeError("boom"), COLLECT]
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)
            if len(sleeps) == 2:
                task._running = False

        task._sleep = fake_sleep
        task._running = True
        asyncio.run(task._loop())

        assert sleeps == [30.0, 30.0]
        assert task.get_status()["total_writes"] == 1

    def test_start_and_stop(self, task):
        async def scenario():
            await task.start()
            await task.start()
            running = task.get_status()["current_status"]
            await task.stop()
            return running

        assert asyncio.run(scenario()) == "active"
        assert task.get_status()["current_status"] == "inactive"
        assert task.state is CollectionState.IDLE
