"""
Error taxonomy for memwatch.

Startup code lets these propagate and exits; the collection loop and the
HTTP handlers catch them at the operation boundary and log.
"""
from typing import Optional


class MemwatchError(Exception):
    """Base class for all memwatch errors"""


class ClusterClientError(MemwatchError):
    """Kubernetes API clients could not be constructed"""


class ConfigFetchError(MemwatchError):
    """The operating ConfigMap could not be read"""

    def __init__(self, namespace: str, name: str, reason: str):
        self.namespace = namespace
        self.name = name
        self.reason = reason
        super().__init__(
            f"failed to read configmap {namespace}/{name}: {reason}"
        )


class ConfigValueInvalid(MemwatchError):
    """A ConfigMap value could not be parsed; the caller substitutes a default"""

    def __init__(self, key: str, value: Optional[str], reason: str):
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"invalid value for {key!r}: {value!r} ({reason})")


class UpstreamListError(MemwatchError):
    """A node capacity or node usage listing could not be fetched"""

    def __init__(self, listing: str, reason: str):
        self.listing = listing
        self.reason = reason
        super().__init__(f"error getting {listing}: {reason}")


class PersistenceError(MemwatchError):
    """A sample row could not be written"""

    def __init__(self, summary: str, reason: str):
        self.summary = summary
        self.reason = reason
        super().__init__(f"failed to persist {summary!r}: {reason}")


class MethodNotAllowed(MemwatchError):
    """Request used a verb other than GET on a read-only endpoint"""

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"method {method} not allowed")
