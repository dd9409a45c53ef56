"""
Docker Engine REST API client

Speaks the daemon's versioned HTTP API over its Unix socket (or TCP) for the
container, network, event and version operations taskdock needs.
"""

import json
import logging
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import timedelta
from typing import TypeVar
from urllib.parse import quote, urlparse

import httpx
from pydantic import ValidationError

from taskdock.core.config import get_settings
from taskdock.core.exceptions import ConfigurationError
from taskdock.docker.endpoints import DockerEndpoints
from taskdock.docker.exceptions import (
    ContainerCreationFailedError,
    ContainerInspectionFailedError,
    ContainerRemovalFailedError,
    ContainerStartFailedError,
    ContainerStopFailedError,
    DaemonTimeoutError,
    DaemonUnavailableError,
    DockerAPIError,
    DockerVersionInfoRetrievalError,
    EventRetrievalFailedError,
    MalformedDaemonResponseError,
    NetworkCreationFailedError,
    NetworkDeletionFailedError,
)
from taskdock.docker.models import (
    DockerContainer,
    DockerContainerCreationRequest,
    DockerEvent,
    DockerNetwork,
    DockerVersionInfo,
)
from taskdock.docker.schemas import (
    CreatedResourceResponse,
    DaemonModel,
    DockerContainerInfo,
    DockerEventMessage,
    DockerVersionResponse,
)

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"
UNIX_SOCKET_BASE_URL = "http://docker"

# Status returned by start and stop when the container is already in the requested state
NOT_MODIFIED = 304

ModelT = TypeVar("ModelT", bound=DaemonModel)


def build_transport(docker_host: str) -> tuple[str, httpx.HTTPTransport]:
    """
    Build the base URL and transport for a DOCKER_HOST-style address

    Args:
        docker_host: unix:///path/to/socket, tcp://host:port or http(s)://host:port

    Returns:
        Tuple of (base_url, transport)

    Raises:
        ConfigurationError: If the address scheme is not supported
    """
    parsed = urlparse(docker_host)

    if parsed.scheme == "unix":
        socket_path = parsed.path or parsed.netloc
        if not socket_path:
            raise ConfigurationError(f"No socket path in Docker host address '{docker_host}'")
        return UNIX_SOCKET_BASE_URL, httpx.HTTPTransport(uds=socket_path)

    if parsed.scheme == "tcp":
        return f"http://{parsed.netloc}", httpx.HTTPTransport()

    if parsed.scheme in ("http", "https"):
        return f"{parsed.scheme}://{parsed.netloc}", httpx.HTTPTransport()

    raise ConfigurationError(
        f"Unsupported Docker host address '{docker_host}'",
        recovery_hint="Use unix:///var/run/docker.sock or tcp://host:port for TASKDOCK_DOCKER_HOST",
    )


class DockerAPI:
    """
    Synchronous client for the Docker Engine REST API

    Each method performs one daemon action. Non-2xx responses are turned into
    a DockerAPIError before the matching typed exception is raised, and
    transport failures are raised as DaemonUnavailableError, so httpx
    exceptions never reach callers.

    The client holds no state besides its connection pool and can be shared
    between threads working on different containers.

    Example:
        with DockerAPI() as api:
            container = api.create_container(request)
            api.start_container(container)
    """

    def __init__(
        self,
        docker_host: str | None = None,
        api_version: str | None = None,
        timeout: float | None = None,
        stop_timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize Docker API client

        Args:
            docker_host: Daemon address (default: from settings)
            api_version: API version path segment, e.g. "v1.37" (default: from settings)
            timeout: Default request timeout in seconds (default: from settings)
            stop_timeout: Read timeout for stop requests in seconds (default: from settings)
            transport: Transport to use instead of one built from docker_host
        """
        settings = get_settings()

        self.docker_host = docker_host or settings.docker_host
        self.api_version = (api_version or settings.docker_api_version).strip("/")
        self.timeout = timeout if timeout is not None else settings.default_timeout_seconds
        self.stop_timeout = stop_timeout if stop_timeout is not None else settings.stop_timeout_seconds

        if transport is None:
            base_url, transport = build_transport(self.docker_host)
        else:
            base_url = UNIX_SOCKET_BASE_URL

        self.client = httpx.Client(
            base_url=base_url,
            transport=transport,
            timeout=self.timeout,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        """Close HTTP client connection pool"""
        self.client.close()

    # Containers

    def create_container(self, creation_request: DockerContainerCreationRequest) -> DockerContainer:
        """
        Create a container

        Args:
            creation_request: Desired container configuration

        Returns:
            DockerContainer for the new container

        Raises:
            ContainerCreationFailedError: If the daemon rejects the request
        """
        logger.info(f"Creating container from image '{creation_request.image.id}'")

        params = {}
        if creation_request.container_name:
            params["name"] = creation_request.container_name

        response = self._send(
            "POST",
            self._url(DockerEndpoints.CONTAINER_CREATE),
            "create container",
            body=creation_request.to_json(),
            params=params,
        )

        error = self._check_for_failure(response, "create container")
        if error is not None:
            logger.error(f"Container creation failed: {error.message}")
            raise ContainerCreationFailedError(error)

        created = self._parse(response, CreatedResourceResponse, "create container")
        for warning in created.warnings or []:
            logger.warning(f"Docker warning while creating container {created.id}: {warning}")

        logger.info(f"Container created: {created.id}")
        return DockerContainer(created.id)

    def start_container(self, container: DockerContainer) -> None:
        """
        Start a created container

        Raises:
            ContainerStartFailedError: If the daemon cannot start the container
        """
        logger.info(f"Starting container {container.id}")

        response = self._send(
            "POST",
            self._url(DockerEndpoints.CONTAINER_START, container_id=container.id),
            "start container",
        )

        if response.status_code == NOT_MODIFIED:
            logger.info(f"Container {container.id} was already running")
            return

        error = self._check_for_failure(response, "start container", container.id)
        if error is not None:
            logger.error(f"Starting container {container.id} failed: {error.message}")
            raise ContainerStartFailedError(error, container.id)

        logger.info(f"Container started: {container.id}")

    def stop_container(self, container: DockerContainer) -> None:
        """
        Stop a running container

        Uses a longer read timeout than other calls, since the daemon waits for
        the container's graceful shutdown period before replying.

        Raises:
            ContainerStopFailedError: If the daemon cannot stop the container
        """
        logger.info(f"Stopping container {container.id}")

        response = self._send(
            "POST",
            self._url(DockerEndpoints.CONTAINER_STOP, container_id=container.id),
            "stop container",
            timeout=httpx.Timeout(self.timeout, read=self.stop_timeout),
        )

        if response.status_code == NOT_MODIFIED:
            logger.info(f"Container {container.id} was already stopped")
            return

        error = self._check_for_failure(response, "stop container", container.id)
        if error is not None:
            logger.error(f"Could not stop container {container.id}: {error.message}")
            raise ContainerStopFailedError(error, container.id)

        logger.info(f"Container stopped: {container.id}")

    def remove_container(self, container: DockerContainer) -> None:
        """
        Remove a container and its anonymous volumes

        Raises:
            ContainerRemovalFailedError: If the daemon cannot remove the container
        """
        logger.info(f"Removing container {container.id}")

        response = self._send(
            "DELETE",
            self._url(DockerEndpoints.CONTAINER_REMOVE, container_id=container.id),
            "remove container",
            params={"v": "true"},
        )

        error = self._check_for_failure(response, "remove container", container.id)
        if error is not None:
            logger.error(f"Could not remove container {container.id}: {error.message}")
            raise ContainerRemovalFailedError(error, container.id)

        logger.info(f"Container removed: {container.id}")

    def inspect_container(self, container: DockerContainer) -> DockerContainerInfo:
        """
        Get a fresh snapshot of a container's state and configuration

        Raises:
            ContainerInspectionFailedError: If the daemon cannot inspect the container
            MalformedDaemonResponseError: If the snapshot cannot be parsed
        """
        logger.info(f"Inspecting container {container.id}")

        response = self._send(
            "GET",
            self._url(DockerEndpoints.CONTAINER_INSPECT, container_id=container.id),
            "inspect container",
        )

        error = self._check_for_failure(response, "inspect container", container.id)
        if error is not None:
            logger.error(f"Could not inspect container {container.id}: {error.message}")
            raise ContainerInspectionFailedError(error, container.id)

        return self._parse(response, DockerContainerInfo, "inspect container")

    # Events

    def wait_for_next_event_for_container(
        self,
        container: DockerContainer,
        event_types: Iterable[str],
        timeout: timedelta,
    ) -> DockerEvent:
        """
        Block until the daemon reports an event of one of the given types for a container

        Only the first line of the event stream is read; the stream is closed
        as soon as it has been received.

        Events are requested from the start of the daemon's event history, so
        an event that fired before this call is still seen. Calling again for
        a container that has already reported returns that same first event,
        not the next one.

        Args:
            container: Container to watch
            event_types: Event types to wait for (e.g. {"die", "health_status"})
            timeout: How long to wait for an event before giving up

        Returns:
            The first matching event

        Raises:
            EventRetrievalFailedError: If the daemon rejects the request
            DaemonTimeoutError: If no event arrives within the timeout
            MalformedDaemonResponseError: If the event cannot be parsed
        """
        event_types = sorted(event_types)
        logger.info(f"Getting next event for container {container.id} (types: {', '.join(event_types)})")

        filters = {
            "event": event_types,
            "container": [container.id],
        }
        params = {
            "since": "0",
            "filters": json.dumps(filters),
        }
        request_timeout = httpx.Timeout(self.timeout, read=timeout.total_seconds())

        with self._translate_transport_errors("get events", container.id):
            with self.client.stream(
                "GET",
                self._url(DockerEndpoints.EVENTS),
                params=params,
                timeout=request_timeout,
            ) as response:
                if not response.is_success:
                    response.read()
                    error = self._check_for_failure(response, "get events", container.id)
                    logger.error(f"Getting events for container {container.id} failed: {error.message}")
                    raise EventRetrievalFailedError(error, container.id)

                first_event = self._read_first_line(response.iter_lines(), container)

        logger.info(f"Received event for container {container.id}: {first_event}")

        try:
            return DockerEventMessage.model_validate_json(first_event).to_event()
        except ValidationError as e:
            raise MalformedDaemonResponseError(
                f"Could not parse event for container '{container.id}': {e}",
                context={"operation": "get events", "id": container.id},
            ) from e

    @staticmethod
    def _read_first_line(lines: Iterator[str], container: DockerContainer) -> str:
        for line in lines:
            if line.strip():
                return line

        raise MalformedDaemonResponseError(
            f"The event stream for container '{container.id}' ended before an event was received",
            context={"operation": "get events", "id": container.id},
        )

    # Networks

    def create_network(self) -> DockerNetwork:
        """
        Create a bridge network with a unique random name

        Raises:
            NetworkCreationFailedError: If the daemon cannot create the network
        """
        logger.info("Creating new network")

        body = {
            "Name": str(uuid.uuid4()),
            "CheckDuplicate": True,
            "Driver": "bridge",
        }

        response = self._send(
            "POST",
            self._url(DockerEndpoints.NETWORK_CREATE),
            "create network",
            body=body,
        )

        error = self._check_for_failure(response, "create network")
        if error is not None:
            logger.error(f"Could not create network: {error.message}")
            raise NetworkCreationFailedError(error)

        created = self._parse(response, CreatedResourceResponse, "create network")

        logger.info(f"Network created: {created.id}")
        return DockerNetwork(created.id)

    def delete_network(self, network: DockerNetwork) -> None:
        """
        Delete a network

        Raises:
            NetworkDeletionFailedError: If the daemon cannot delete the network
        """
        logger.info(f"Deleting network {network.id}")

        response = self._send(
            "DELETE",
            self._url(DockerEndpoints.NETWORK_DELETE, network_id=network.id),
            "delete network",
        )

        error = self._check_for_failure(response, "delete network", network.id)
        if error is not None:
            logger.error(f"Could not delete network {network.id}: {error.message}")
            raise NetworkDeletionFailedError(error, network.id)

        logger.info(f"Network deleted: {network.id}")

    # System Information

    def get_server_version_info(self) -> DockerVersionInfo:
        """
        Get the daemon's version information

        Raises:
            DockerVersionInfoRetrievalError: If the daemon returns an error
            MalformedDaemonResponseError: If the response cannot be parsed
        """
        logger.info("Getting Docker version information")

        response = self._send("GET", self._url(DockerEndpoints.VERSION), "get version")

        error = self._check_for_failure(response, "get version")
        if error is not None:
            logger.error(f"Could not get Docker version info: {error.message}")
            raise DockerVersionInfoRetrievalError(error)

        version_response = self._parse(response, DockerVersionResponse, "get version")

        try:
            return version_response.to_version_info()
        except ValueError as e:
            raise MalformedDaemonResponseError(
                f"Could not parse Docker version information: {e}",
                context={"operation": "get version"},
            ) from e

    # Helpers

    def _url(self, endpoint: str, **path_params: str) -> str:
        quoted = {name: quote(value, safe="") for name, value in path_params.items()}
        return f"/{self.api_version}{endpoint.format(**quoted)}"

    def _send(
        self,
        method: str,
        url: str,
        operation: str,
        body: dict | None = None,
        params: dict | None = None,
        timeout: httpx.Timeout | None = None,
    ) -> httpx.Response:
        """Send a request and read its whole body"""
        kwargs = {}
        if timeout is not None:
            kwargs["timeout"] = timeout

        with self._translate_transport_errors(operation):
            return self.client.request(method, url, json=body, params=params, **kwargs)

    @contextmanager
    def _translate_transport_errors(self, operation: str, resource_id: str | None = None):
        context = {"operation": operation}
        if resource_id is not None:
            context["id"] = resource_id

        try:
            yield
        except httpx.TimeoutException as e:
            logger.error(f"Timed out waiting for Docker daemon to {operation}: {e}")
            raise DaemonTimeoutError(
                f"Timed out waiting for the Docker daemon to {operation}",
                context=context,
            ) from e
        except httpx.TransportError as e:
            logger.error(f"Could not reach Docker daemon at {self.docker_host} to {operation}: {e}")
            raise DaemonUnavailableError(
                f"Could not connect to the Docker daemon at {self.docker_host}: {e}",
                context=context,
            ) from e

    def _check_for_failure(
        self,
        response: httpx.Response,
        operation: str,
        resource_id: str | None = None,
    ) -> DockerAPIError | None:
        """
        Extract the error from a failed response

        The daemon replies with {"message": "..."} as application/json for most
        errors, but some (proxy and routing failures) come back as plain text.
        The declared content type decides which one to read.

        Args:
            response: Response to check
            operation: Name of the API operation, for error context
            resource_id: ID of the container or network involved, if any

        Returns:
            None if the response was successful, otherwise the extracted error

        Raises:
            MalformedDaemonResponseError: If a JSON error body cannot be read
        """
        if response.is_success:
            return None

        media_type = response.headers.get("content-type", "").split(";")[0].strip().lower()

        if media_type != JSON_MEDIA_TYPE:
            logger.warning(
                f"Error response from Docker daemon was not in JSON format "
                f"(status {response.status_code}): {response.text}"
            )
            return DockerAPIError(response.status_code, response.text)

        context = {"operation": operation, "status": response.status_code}
        if resource_id is not None:
            context["id"] = resource_id

        try:
            parsed = response.json()
        except ValueError as e:
            raise MalformedDaemonResponseError(
                f"Error response from Docker daemon was declared as JSON but could not be parsed: {response.text}",
                context=context,
            ) from e

        if not isinstance(parsed, dict) or not isinstance(parsed.get("message"), str):
            raise MalformedDaemonResponseError(
                f"Error response from Docker daemon has no message: {response.text}",
                context=context,
            )

        return DockerAPIError(response.status_code, parsed["message"])

    @staticmethod
    def _parse(response: httpx.Response, model: type[ModelT], operation: str) -> ModelT:
        try:
            return model.model_validate_json(response.content)
        except ValidationError as e:
            logger.error(f"Could not parse response to {operation}: {response.text}")
            raise MalformedDaemonResponseError(
                f"Could not parse the Docker daemon's response to {operation}: {e}",
                context={"operation": operation},
            ) from e
