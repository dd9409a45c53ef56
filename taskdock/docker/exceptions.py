"""
Docker exceptions with recovery hints

All exceptions carry the daemon's own message unchanged in `message`, with the
operation and resource identifiers in `context`.
"""

from dataclasses import dataclass

from taskdock.core.exceptions import TaskdockError


@dataclass(frozen=True)
class DockerAPIError:
    """Status code and message extracted from a failed daemon response"""

    status_code: int
    message: str


class DockerException(TaskdockError):
    """Base exception for all Docker-related errors"""


class DaemonUnavailableError(DockerException):
    """Raised when the Docker daemon cannot be reached at all"""

    def __init__(
        self,
        message: str = "Could not connect to the Docker daemon",
        recovery_hint: str = "",
        context: dict | None = None,
    ):
        default_hint = "Check that Docker is running and that TASKDOCK_DOCKER_HOST points at its socket."
        super().__init__(message, recovery_hint or default_hint, context)


class DaemonTimeoutError(DaemonUnavailableError):
    """Raised when the Docker daemon does not respond within the allowed time"""

    def __init__(
        self,
        message: str = "Timed out waiting for the Docker daemon",
        recovery_hint: str = "",
        context: dict | None = None,
    ):
        default_hint = "The daemon may be overloaded. Check 'docker info' responds promptly."
        super().__init__(message, recovery_hint or default_hint, context)


class MalformedDaemonResponseError(DockerException):
    """Raised when a successful daemon response cannot be parsed into the expected shape"""

    def __init__(
        self,
        message: str = "The Docker daemon returned an unexpected response",
        recovery_hint: str = "",
        context: dict | None = None,
    ):
        default_hint = "The daemon may not support the API version in use. Check TASKDOCK_DOCKER_API_VERSION."
        super().__init__(message, recovery_hint or default_hint, context)


class DockerOperationError(DockerException):
    """
    Raised when the daemon answers an API call with a non-2xx status

    Attributes:
        error: Status code and message extracted from the response
        operation: Name of the API operation that failed
    """

    operation = "operation"

    def __init__(
        self,
        error: DockerAPIError,
        resource_id: str | None = None,
        recovery_hint: str = "",
    ):
        self.error = error
        self.resource_id = resource_id
        context = {"operation": self.operation, "status": error.status_code}
        if resource_id is not None:
            context["id"] = resource_id
        super().__init__(error.message, recovery_hint, context)

    @property
    def status_code(self) -> int:
        return self.error.status_code


class ContainerCreationFailedError(DockerOperationError):
    """Raised when the daemon refuses to create a container"""

    operation = "create container"


class ContainerStartFailedError(DockerOperationError):
    """Raised when a container cannot be started"""

    operation = "start container"


class ContainerStopFailedError(DockerOperationError):
    """Raised when a container cannot be stopped"""

    operation = "stop container"


class ContainerRemovalFailedError(DockerOperationError):
    """Raised when a container cannot be removed"""

    operation = "remove container"


class ContainerInspectionFailedError(DockerOperationError):
    """Raised when a container cannot be inspected"""

    operation = "inspect container"


class EventRetrievalFailedError(DockerOperationError):
    """Raised when the daemon refuses an event stream request"""

    operation = "get events"


class NetworkCreationFailedError(DockerOperationError):
    """Raised when a network cannot be created"""

    operation = "create network"


class NetworkDeletionFailedError(DockerOperationError):
    """Raised when a network cannot be deleted"""

    operation = "delete network"


class DockerVersionInfoRetrievalError(DockerOperationError):
    """Raised when the daemon's version endpoint returns an error"""

    operation = "get version"


class ContainerHealthCheckError(DockerException):
    """Raised when a container's health status cannot be determined"""

    def __init__(
        self,
        message: str,
        recovery_hint: str = "",
        context: dict | None = None,
    ):
        super().__init__(message, recovery_hint, context)


class ImageBuildFailedError(DockerException):
    """
    Raised when an image build fails

    Attributes:
        output: Full captured output of the build
    """

    def __init__(self, message: str, output: str = "", recovery_hint: str = ""):
        self.output = output
        super().__init__(message, recovery_hint)


class ImagePullFailedError(DockerException):
    """Raised when an image cannot be pulled"""

    def __init__(self, message: str, image_name: str, recovery_hint: str = ""):
        self.image_name = image_name
        default_hint = "Check the image name and tag, and that you are logged in to the registry if it is private."
        super().__init__(message, recovery_hint or default_hint)


class InvalidContainerRequestError(DockerException):
    """Raised when a container creation request is not internally consistent"""

    def __init__(self, message: str, recovery_hint: str = ""):
        super().__init__(message, recovery_hint or "Check the container's configuration.")
