"""
taskdock

Container runtime control for a task-execution tool: builds images and
drives containers, networks and health checks through the Docker daemon.
"""

__version__ = "0.4.0"
__license__ = "MIT"

from taskdock.docker.client import DockerClient
from taskdock.docker.models import DockerContainerCreationRequest, HealthStatus

__all__ = [
    "DockerClient",
    "DockerContainerCreationRequest",
    "HealthStatus",
]
