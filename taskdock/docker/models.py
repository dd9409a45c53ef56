"""
Docker data models

Value types passed between the lifecycle facade and its callers. None of them
are mutated after construction; state changes on the daemon side are observed
by fetching a fresh inspection snapshot.
"""

import re
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum

from packaging.version import Version

from taskdock.docker.exceptions import InvalidContainerRequestError

# RFC 1123 hostname: dot-separated labels of letters, digits and inner hyphens
_HOSTNAME_LABEL = r"[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
HOSTNAME_PATTERN = re.compile(rf"^{_HOSTNAME_LABEL}(\.{_HOSTNAME_LABEL})*$")


class HealthStatus(str, Enum):
    """Outcome of waiting for a container to report its health"""

    NO_HEALTH_CHECK = "no_health_check"
    BECAME_HEALTHY = "became_healthy"
    BECAME_UNHEALTHY = "became_unhealthy"
    EXITED = "exited"


@dataclass(frozen=True)
class DockerContainer:
    """Handle to a container created by the daemon"""

    id: str


@dataclass(frozen=True)
class DockerImage:
    """A built or pulled image, identified by tag or content hash"""

    id: str


@dataclass(frozen=True)
class DockerNetwork:
    """Handle to a network created by the daemon"""

    id: str


@dataclass(frozen=True)
class DockerEvent:
    """A single event read from the daemon's event stream"""

    status: str


@dataclass(frozen=True)
class DockerContainerRunResult:
    exit_code: int


@dataclass(frozen=True)
class DockerImageBuildProgress:
    """
    Progress of an image build

    Attributes:
        current_step: 1-based number of the step now running
        total_steps: Number of steps in the Dockerfile
        message: The Dockerfile instruction for the current step
    """

    current_step: int
    total_steps: int
    message: str


def duration_to_nanoseconds(duration: timedelta) -> int:
    """Convert a duration to the integer nanoseconds the daemon expects"""
    return (duration // timedelta(microseconds=1)) * 1000


@dataclass(frozen=True)
class HealthCheckConfig:
    """
    Health check settings for a new container

    An empty test command keeps whatever health check the image defines; if
    the image defines none, the container has no health check. Settings left
    as None also fall back to the image or daemon defaults.
    """

    test: list[str] = field(default_factory=list)
    interval: timedelta | None = None
    timeout: timedelta | None = None
    start_period: timedelta | None = None
    retries: int | None = None

    def __post_init__(self):
        if self.retries is not None and self.retries < 0:
            raise InvalidContainerRequestError(f"Health check retries must not be negative, got {self.retries}")

    def to_json(self) -> dict:
        body: dict = {}
        if self.test:
            body["Test"] = list(self.test)
        if self.interval is not None:
            body["Interval"] = duration_to_nanoseconds(self.interval)
        if self.timeout is not None:
            body["Timeout"] = duration_to_nanoseconds(self.timeout)
        if self.start_period is not None:
            body["StartPeriod"] = duration_to_nanoseconds(self.start_period)
        if self.retries is not None:
            body["Retries"] = self.retries
        return body


@dataclass(frozen=True)
class VolumeMount:
    """Bind mount of a local path into a container"""

    local_path: str
    container_path: str
    options: str | None = None

    def to_bind(self) -> str:
        bind = f"{self.local_path}:{self.container_path}"
        if self.options:
            bind += f":{self.options}"
        return bind


@dataclass(frozen=True)
class PortMapping:
    """Publishes a container TCP port on a local port"""

    local_port: int
    container_port: int

    def __post_init__(self):
        for port in (self.local_port, self.container_port):
            if not 0 < port <= 65535:
                raise InvalidContainerRequestError(f"Port {port} is not a valid port number")


@dataclass(frozen=True)
class UserAndGroup:
    """Numeric user and group to run the container's command as"""

    user_id: int
    group_id: int

    def __str__(self) -> str:
        return f"{self.user_id}:{self.group_id}"


@dataclass(frozen=True)
class DockerContainerCreationRequest:
    """
    Desired configuration of a new container

    Attributes:
        image: Image to create the container from
        network: Network to attach the container to
        command: Command to run; empty uses the image's default
        hostname: Hostname inside the container, also its network alias by default
        network_alias: Name other containers on the network use to reach this one
        container_name: Name for the container; None lets the daemon choose
        environment: Environment variables
        working_directory: Working directory; None uses the image's default
        volume_mounts: Local paths to bind into the container
        port_mappings: Container ports to publish locally
        health_check: Health check overrides
        user_and_group: Run as this user and group instead of the image's user
    """

    image: DockerImage
    network: DockerNetwork
    command: list[str]
    hostname: str
    network_alias: str | None = None
    container_name: str | None = None
    environment: dict[str, str] = field(default_factory=dict)
    working_directory: str | None = None
    volume_mounts: frozenset[VolumeMount] = frozenset()
    port_mappings: frozenset[PortMapping] = frozenset()
    health_check: HealthCheckConfig = field(default_factory=HealthCheckConfig)
    user_and_group: UserAndGroup | None = None

    def __post_init__(self):
        if len(self.hostname) > 253 or not HOSTNAME_PATTERN.match(self.hostname):
            raise InvalidContainerRequestError(
                f"The hostname '{self.hostname}' is not valid. Hostnames may contain only "
                "letters, digits, hyphens and dots, and each label must not start or end with a hyphen."
            )

    @property
    def alias(self) -> str:
        return self.network_alias or self.hostname

    def to_json(self) -> dict:
        """Serialize to the daemon's container create schema"""
        body: dict = {
            "AttachStdin": True,
            "AttachStdout": True,
            "AttachStderr": True,
            "Tty": True,
            "OpenStdin": True,
            "StdinOnce": True,
            "Image": self.image.id,
            "Hostname": self.hostname,
            "Env": [f"{name}={value}" for name, value in sorted(self.environment.items())],
            "ExposedPorts": {
                f"{mapping.container_port}/tcp": {}
                for mapping in sorted(self.port_mappings, key=lambda m: m.container_port)
            },
            "HostConfig": {
                "NetworkMode": self.network.id,
                "Binds": sorted(mount.to_bind() for mount in self.volume_mounts),
                "PortBindings": self._port_bindings(),
            },
            "NetworkingConfig": {
                "EndpointsConfig": {
                    self.network.id: {"Aliases": [self.alias]},
                },
            },
        }

        if self.command:
            body["Cmd"] = list(self.command)

        if self.working_directory is not None:
            body["WorkingDir"] = self.working_directory

        health_check = self.health_check.to_json()
        if health_check:
            body["Healthcheck"] = health_check

        if self.user_and_group is not None:
            body["User"] = str(self.user_and_group)

        return body

    def _port_bindings(self) -> dict:
        bindings: dict[str, list[dict]] = {}
        for mapping in sorted(self.port_mappings, key=lambda m: (m.container_port, m.local_port)):
            bindings.setdefault(f"{mapping.container_port}/tcp", []).append(
                {"HostIp": "", "HostPort": str(mapping.local_port)}
            )
        return bindings


@dataclass(frozen=True)
class DockerVersionInfo:
    """
    Docker daemon version information

    Attributes:
        version: Daemon release, parsed for comparison (e.g. 24.0.7)
        version_string: Release exactly as reported (e.g. "17.04.0-ce")
        api_version: Newest API version the daemon speaks
        min_api_version: Oldest API version the daemon accepts
        git_commit: Commit the daemon was built from
    """

    version: Version
    version_string: str
    api_version: str
    min_api_version: str
    git_commit: str

    def __str__(self) -> str:
        return (
            f"{self.version_string} (API version: {self.api_version}, "
            f"minimum supported API version: {self.min_api_version}, commit: {self.git_commit})"
        )


@dataclass(frozen=True)
class DockerVersionInfoRetrievalResult:
    """Outcome of probing the daemon's version; never raised, always returned"""

    succeeded: bool
    info: DockerVersionInfo | None = None
    message: str | None = None

    @classmethod
    def success(cls, info: DockerVersionInfo) -> "DockerVersionInfoRetrievalResult":
        return cls(succeeded=True, info=info)

    @classmethod
    def failure(cls, message: str) -> "DockerVersionInfoRetrievalResult":
        return cls(succeeded=False, message=message)

    def __str__(self) -> str:
        if self.succeeded:
            return str(self.info)
        return f"(could not get Docker version information: {self.message})"
