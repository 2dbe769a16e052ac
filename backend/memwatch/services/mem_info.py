"""
Renders a sampling pass for storage and for the /get_mem response.

The mem_info string is each node's available memory in MB, in sampling
order, followed by the reserved memory in MB, joined by underscores:
"2048_1024_512".
"""
from typing import Iterable, List

from memwatch.core.utils import bytes_to_mb
from memwatch.schemas.node_memory import MemoryTotals, NodeSample

SEPARATOR = "_"


def format_mem_info(samples: Iterable[NodeSample], reserve_mem_bytes: int) -> str:
    parts: List[str] = [str(sample.available_memory_mb) for sample in samples]
    parts.append(str(bytes_to_mb(reserve_mem_bytes)))
    return SEPARATOR.join(parts)


def summarize_totals(samples: Iterable[NodeSample], reserve_mem_bytes: int) -> MemoryTotals:
    return MemoryTotals(
        total_memory_bytes=sum(sample.total_memory_bytes for sample in samples),
        reserve_mem_bytes=reserve_mem_bytes,
    )
