from typing import Dict, Optional

from kubernetes import client as k8s_client

from memwatch.core.exceptions import ConfigFetchError, ConfigValueInvalid
from memwatch.core.logging import cluster_logger
from memwatch.core.utils import parse_duration, parse_int
from memwatch.schemas.operating_config import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_RESERVE_MEM_MB,
    Mode,
    OperatingConfig,
)


class ConfigReader:
    """Reads the operating ConfigMap. Nothing is cached between calls."""

    def __init__(
        self,
        core_api: k8s_client.CoreV1Api,
        namespace: str = "monitor",
        name: str = "mysql-config",
        request_timeout: Optional[float] = None,
    ):
        self.core_api = core_api
        self.namespace = namespace or "monitor"
        self.name = name
        self.request_timeout = request_timeout

    def read(self) -> OperatingConfig:
        """
        Fetch the ConfigMap and resolve it into an OperatingConfig.

        Malformed interval or reserve_mem values are logged and replaced by
        their defaults; they never fail the read.

        Raises:
            ConfigFetchError: if the ConfigMap cannot be fetched
        """
        try:
            config_map = self.core_api.read_namespaced_config_map(
                self.name, self.namespace, _request_timeout=self.request_timeout
            )
        except Exception as e:
            raise ConfigFetchError(self.namespace, self.name, str(e)) from e

        data: Dict[str, str] = config_map.data or {}
        return OperatingConfig(
            mode=Mode.from_raw(data.get("mode")),
            host=data.get("host", ""),
            port=data.get("port", ""),
            user=data.get("user", ""),
            password=data.get("password", ""),
            database=data.get("database", ""),
            poll_interval=self._resolve_interval(data.get("interval")),
            reserve_mem_bytes=self._resolve_reserve_mem(data.get("reserve_mem")) * 1024 * 1024,
        )

    def _resolve_interval(self, raw: Optional[str]):
        try:
            interval = parse_duration("interval", raw)
            if interval.total_seconds() <= 0:
                raise ConfigValueInvalid("interval", raw, "interval must be positive")
            return interval
        except ConfigValueInvalid as e:
            cluster_logger.warning(
                f"Invalid interval value, using default "
                f"{int(DEFAULT_POLL_INTERVAL.total_seconds())}s: {e}"
            )
            return DEFAULT_POLL_INTERVAL

    def _resolve_reserve_mem(self, raw: Optional[str]) -> int:
        try:
            return parse_int("reserve_mem", raw)
        except ConfigValueInvalid as e:
            cluster_logger.warning(
                f"Invalid reserve_mem value, using default {DEFAULT_RESERVE_MEM_MB}MB: {e}"
            )
            return DEFAULT_RESERVE_MEM_MB
