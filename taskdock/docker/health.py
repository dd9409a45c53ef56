"""
Container health checks

Waits for a container's health check to settle and reads its most recent
result. Each call performs one inspect-then-wait cycle; callers that want to
poll call again.
"""

import logging
import math
from datetime import timedelta

from taskdock.docker.api import DockerAPI
from taskdock.docker.exceptions import ContainerHealthCheckError, DockerException
from taskdock.docker.models import DockerContainer, DockerEvent, HealthStatus
from taskdock.docker.schemas import DockerContainerHealthCheckConfig, DockerHealthCheckResult

logger = logging.getLogger(__name__)

HEALTH_EVENT_TYPES = frozenset({"die", "health_status"})

# Values the daemon uses when the container's config leaves them unset
DEFAULT_INTERVAL = timedelta(seconds=30)
DEFAULT_TIMEOUT = timedelta(seconds=30)
DEFAULT_RETRIES = 3


def health_check_wait_timeout(config: DockerContainerHealthCheckConfig) -> timedelta:
    """
    How long to wait for a container to report its health

    start_period + (interval * retries) + timeout: enough for the daemon to
    run every retry after the start period, plus one probe's timeout. Unset
    values take the daemon's defaults. The result is rounded up to a whole
    second.
    """
    interval = config.interval or DEFAULT_INTERVAL
    timeout = config.timeout or DEFAULT_TIMEOUT
    retries = config.retries or DEFAULT_RETRIES

    total = config.start_period + (interval * retries) + timeout
    return timedelta(seconds=math.ceil(total.total_seconds()))


def classify_event(container: DockerContainer, event: DockerEvent) -> HealthStatus:
    """
    Map a die or health_status event to the health status it reports

    Raises:
        ContainerHealthCheckError: If the event is neither a death nor a health report
    """
    status = event.status

    if status == "die" or status.startswith("die"):
        return HealthStatus.EXITED

    if "unhealthy" in status:
        return HealthStatus.BECAME_UNHEALTHY

    if "healthy" in status:
        return HealthStatus.BECAME_HEALTHY

    raise ContainerHealthCheckError(
        f"Unexpected event received while waiting for health status of container '{container.id}': {status}",
        context={"id": container.id},
    )


def wait_for_health_status(api: DockerAPI, container: DockerContainer) -> HealthStatus:
    """
    Wait for a container to become healthy, become unhealthy or exit

    Returns:
        NO_HEALTH_CHECK straight away if the container has no health check,
        otherwise the status reported by the next die or health_status event

    Raises:
        ContainerHealthCheckError: If inspecting the container or waiting for
            its next event fails
    """
    try:
        info = api.inspect_container(container)
    except DockerException as e:
        raise ContainerHealthCheckError(
            f"Checking if container '{container.id}' has a health check failed: {e.message}",
            context={"id": container.id},
        ) from e

    config = info.config.healthcheck
    if not config.enabled:
        logger.info(f"Container {container.id} has no health check")
        return HealthStatus.NO_HEALTH_CHECK

    timeout = health_check_wait_timeout(config)
    logger.info(f"Waiting up to {timeout.total_seconds():.0f}s for health status of container {container.id}")

    try:
        event = api.wait_for_next_event_for_container(container, HEALTH_EVENT_TYPES, timeout)
    except DockerException as e:
        raise ContainerHealthCheckError(
            f"Waiting for health status of container '{container.id}' failed: {e.message}",
            context={"id": container.id},
        ) from e

    status = classify_event(container, event)
    logger.info(f"Container {container.id} health status: {status.value}")
    return status


def get_last_health_check_result(api: DockerAPI, container: DockerContainer) -> DockerHealthCheckResult:
    """
    Get the most recent health check result for a container

    Raises:
        ContainerHealthCheckError: If the container cannot be inspected, has no
            health check, or has no results yet
    """
    try:
        info = api.inspect_container(container)
    except DockerException as e:
        raise ContainerHealthCheckError(
            f"Could not get the last health check result for container '{container.id}': {e.message}",
            context={"id": container.id},
        ) from e

    health = info.state.health
    if health is None:
        raise ContainerHealthCheckError(
            f"Could not get the last health check result for container '{container.id}'. "
            "The container does not have a health check.",
            context={"id": container.id},
        )

    if not health.log:
        raise ContainerHealthCheckError(
            f"Could not get the last health check result for container '{container.id}'. "
            "The container has not reported any health check results.",
            context={"id": container.id},
        )

    return health.log[-1]
