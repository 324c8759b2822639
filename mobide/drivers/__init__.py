"""Driver layer - container runtime abstraction."""

from mobide.drivers.base import Driver, TerminalStream
from mobide.drivers.docker import DockerDriver, DockerTerminalStream

__all__ = ["DockerDriver", "DockerTerminalStream", "Driver", "TerminalStream"]
