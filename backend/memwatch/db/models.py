from sqlalchemy import BigInteger, Column, DateTime, Integer, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class NodeResource(Base):
    """One collection cycle: per-node available memory and reserved memory, in MB."""

    __tablename__ = "sea_node_resource"

    id = Column(Integer, primary_key=True, index=True)
    mem_info = Column(Text, nullable=False)  # e.g. "2048_1024_512"
    collect_time = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )

    def __repr__(self):
        return f"<NodeResource(mem_info='{self.mem_info}', collect_time='{self.collect_time}')>"


class NodeResourceTotals(Base):
    """One collection cycle in the totals shape: summed allocatable and reserved bytes."""

    __tablename__ = "sea_node_resource_total"

    id = Column(Integer, primary_key=True, index=True)
    total_mem = Column(BigInteger, nullable=False)
    reserve_mem = Column(BigInteger, nullable=False)
    collect_time = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )

    def __repr__(self):
        return (
            f"<NodeResourceTotals(total_mem={self.total_mem}, "
            f"reserve_mem={self.reserve_mem}, collect_time='{self.collect_time}')>"
        )
