"""Docker driver."""

from mobide.drivers.docker.docker import DockerDriver, DockerTerminalStream

__all__ = ["DockerDriver", "DockerTerminalStream"]
