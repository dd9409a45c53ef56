"""
Docker daemon control

Provides the lifecycle client used by the task tool:
- Image build and pull
- Container create, run, start, stop and remove
- Container health checks
- Network create and delete
- Daemon version and availability probes
"""

from taskdock.docker.api import DockerAPI
from taskdock.docker.client import DockerClient
from taskdock.docker.exceptions import (
    ContainerCreationFailedError,
    ContainerHealthCheckError,
    ContainerInspectionFailedError,
    ContainerRemovalFailedError,
    ContainerStartFailedError,
    ContainerStopFailedError,
    DaemonTimeoutError,
    DaemonUnavailableError,
    DockerAPIError,
    DockerException,
    DockerOperationError,
    DockerVersionInfoRetrievalError,
    EventRetrievalFailedError,
    ImageBuildFailedError,
    ImagePullFailedError,
    InvalidContainerRequestError,
    MalformedDaemonResponseError,
    NetworkCreationFailedError,
    NetworkDeletionFailedError,
)
from taskdock.docker.models import (
    DockerContainer,
    DockerContainerCreationRequest,
    DockerContainerRunResult,
    DockerEvent,
    DockerImage,
    DockerImageBuildProgress,
    DockerNetwork,
    DockerVersionInfo,
    DockerVersionInfoRetrievalResult,
    HealthCheckConfig,
    HealthStatus,
    PortMapping,
    UserAndGroup,
    VolumeMount,
)
from taskdock.docker.schemas import DockerContainerInfo, DockerHealthCheckResult

__all__ = [
    "DockerAPI",
    "DockerClient",
    "DockerAPIError",
    "DockerContainer",
    "DockerContainerCreationRequest",
    "DockerContainerInfo",
    "DockerContainerRunResult",
    "DockerEvent",
    "DockerHealthCheckResult",
    "DockerImage",
    "DockerImageBuildProgress",
    "DockerNetwork",
    "DockerVersionInfo",
    "DockerVersionInfoRetrievalResult",
    "HealthCheckConfig",
    "HealthStatus",
    "PortMapping",
    "UserAndGroup",
    "VolumeMount",
    "DockerException",
    "DockerOperationError",
    "DaemonUnavailableError",
    "DaemonTimeoutError",
    "MalformedDaemonResponseError",
    "ContainerCreationFailedError",
    "ContainerStartFailedError",
    "ContainerStopFailedError",
    "ContainerRemovalFailedError",
    "ContainerInspectionFailedError",
    "ContainerHealthCheckError",
    "EventRetrievalFailedError",
    "NetworkCreationFailedError",
    "NetworkDeletionFailedError",
    "DockerVersionInfoRetrievalError",
    "ImageBuildFailedError",
    "ImagePullFailedError",
    "InvalidContainerRequestError",
]
