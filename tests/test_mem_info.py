from memwatch.core.utils import bytes_to_mb
from memwatch.schemas.node_memory import NodeSample
from memwatch.services.mem_info import format_mem_info, summarize_totals

from conftest import MIB


def sample(name, total, available):
    return NodeSample(identity=name, total_memory_bytes=total, available_memory_bytes=available)


def test_two_nodes_and_reserve():
    samples = [sample("n1", 8192 * MIB, 2048 * MIB), sample("n2", 4096 * MIB, 1024 * MIB)]
    assert format_mem_info(samples, 512 * MIB) == "2048_1024_512"


def test_partial_megabytes_are_truncated():
    samples = [sample("n1", 4096 * MIB, 2048 * MIB + MIB - 1)]
    assert format_mem_info(samples, 1024 * MIB) == "2048_1024"


def test_negative_values_truncate_toward_zero():
    samples = [sample("n1", MIB, -(MIB + MIB // 2)), sample("n2", MIB, -(MIB // 2))]
    assert format_mem_info(samples, 1024 * MIB) == "-1_0_1024"


def test_no_nodes_renders_reserve_only():
    assert format_mem_info([], 512 * MIB) == "512"


def test_bytes_to_mb():
    assert bytes_to_mb(0) == 0
    assert bytes_to_mb(3 * MIB - 1) == 2
    assert bytes_to_mb(-3 * MIB + 1) == -2


def test_summarize_totals():
    samples = [sample("n1", 8192 * MIB, 2048 * MIB), sample("n2", 4096 * MIB, -10)]
    totals = summarize_totals(samples, 512 * MIB)

    assert totals.total_memory_bytes == 12288 * MIB
    assert totals.reserve_mem_bytes == 512 * MIB
