"""
Pydantic models for Docker daemon responses

Field aliases are the daemon's own JSON field names. Durations arrive as
integer nanoseconds and are converted to timedelta on parse.
"""

import re
from datetime import timedelta

from packaging.version import InvalidVersion, Version
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from taskdock.docker.models import DockerEvent, DockerVersionInfo

_RELEASE_PATTERN = re.compile(r"^\d+(\.\d+)*")


class DaemonModel(BaseModel):
    """Base for daemon response models: accept field names or aliases, ignore unknown fields"""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


def _nanoseconds_to_timedelta(value):
    if value is None:
        return timedelta(0)
    if isinstance(value, int):
        return timedelta(microseconds=value / 1000)
    return value


class DockerHealthCheckResult(DaemonModel):
    """One run of a container's health check command"""

    exit_code: int = Field(alias="ExitCode")
    output: str = Field(default="", alias="Output")


class DockerContainerHealthCheckState(DaemonModel):
    """
    Health sub-state of a running container

    Attributes:
        status: starting, healthy or unhealthy
        log: Recent results, oldest first; the daemon keeps only the last few
    """

    status: str = Field(default="", alias="Status")
    log: list[DockerHealthCheckResult] = Field(default_factory=list, alias="Log")

    @field_validator("log", mode="before")
    @classmethod
    def _null_log_is_empty(cls, value):
        return [] if value is None else value


class DockerContainerState(DaemonModel):
    status: str = Field(default="", alias="Status")
    running: bool = Field(default=False, alias="Running")
    exit_code: int | None = Field(default=None, alias="ExitCode")
    health: DockerContainerHealthCheckState | None = Field(default=None, alias="Health")


class DockerContainerHealthCheckConfig(DaemonModel):
    """Health check as configured on the container, echoed back by inspection"""

    test: list[str] = Field(default_factory=list, alias="Test")
    interval: timedelta = Field(default=timedelta(0), alias="Interval")
    timeout: timedelta = Field(default=timedelta(0), alias="Timeout")
    start_period: timedelta = Field(default=timedelta(0), alias="StartPeriod")
    retries: int = Field(default=0, alias="Retries", ge=0)

    @field_validator("test", mode="before")
    @classmethod
    def _null_test_is_empty(cls, value):
        return [] if value is None else value

    @field_validator("interval", "timeout", "start_period", mode="before")
    @classmethod
    def _parse_duration(cls, value):
        return _nanoseconds_to_timedelta(value)

    @field_validator("retries", mode="before")
    @classmethod
    def _null_retries_is_zero(cls, value):
        return 0 if value is None else value

    @property
    def enabled(self) -> bool:
        """False if no test command is configured, or the image's check was switched off"""
        return bool(self.test) and self.test != ["NONE"]


class DockerContainerConfiguration(DaemonModel):
    healthcheck: DockerContainerHealthCheckConfig = Field(
        default_factory=DockerContainerHealthCheckConfig,
        alias="Healthcheck",
    )

    @field_validator("healthcheck", mode="before")
    @classmethod
    def _null_healthcheck_is_empty(cls, value):
        return {} if value is None else value


class DockerContainerInfo(DaemonModel):
    """Point-in-time snapshot returned by container inspection"""

    id: str = Field(default="", alias="Id")
    state: DockerContainerState = Field(alias="State")
    config: DockerContainerConfiguration = Field(alias="Config")


class CreatedResourceResponse(DaemonModel):
    """Response to a container or network create call"""

    id: str = Field(alias="Id", min_length=1)
    warnings: list[str] | None = Field(default=None, alias="Warnings")


class DockerEventMessage(DaemonModel):
    """
    One line of the daemon's event stream

    Newer daemons report the event type in Action; older ones only in status.
    """

    status: str | None = Field(default=None, alias="status")
    action: str | None = Field(default=None, alias="Action")

    @model_validator(mode="after")
    def _require_status_or_action(self):
        if self.status is None and self.action is None:
            raise ValueError("event has neither a status nor an Action field")
        return self

    def to_event(self) -> DockerEvent:
        return DockerEvent(self.status if self.status is not None else self.action)


class DockerVersionResponse(DaemonModel):
    version: str = Field(alias="Version")
    api_version: str = Field(alias="ApiVersion")
    min_api_version: str = Field(alias="MinAPIVersion")
    git_commit: str = Field(alias="GitCommit")

    def to_version_info(self) -> DockerVersionInfo:
        """
        Convert to DockerVersionInfo

        Raises:
            ValueError: If the version does not start with a numeric release
        """
        match = _RELEASE_PATTERN.match(self.version)
        if match is None:
            raise ValueError(f"'{self.version}' is not a valid version")

        try:
            parsed = Version(match.group(0))
        except InvalidVersion as e:
            raise ValueError(f"'{self.version}' is not a valid version") from e

        return DockerVersionInfo(
            version=parsed,
            version_string=self.version,
            api_version=self.api_version,
            min_api_version=self.min_api_version,
            git_commit=self.git_commit,
        )
