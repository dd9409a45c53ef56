"""
Docker executable detection.

Handles:
- Explicitly configured docker executable
- Docker on PATH
- Standard Linux install locations
"""

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

STANDARD_PATHS = [
    Path("/usr/bin/docker"),
    Path("/usr/local/bin/docker"),
    Path("/snap/bin/docker"),
]


def find_docker_executable(configured: str | None = None) -> str | None:
    """
    Find the Docker executable path.

    Checks in order:
    1. The configured executable (resolved through PATH if it is a bare name)
    2. docker on PATH
    3. Linux standard paths: /usr/bin/docker, /usr/local/bin/docker, /snap/bin/docker

    Args:
        configured: Executable name or path from settings, if any

    Returns:
        Path to docker executable, or None if not found
    """
    if configured:
        resolved = shutil.which(configured)
        if resolved:
            logger.debug(f"Using configured Docker executable: {resolved}")
            return resolved
        logger.warning(f"Configured Docker executable not found: {configured}")

    docker_path = shutil.which("docker")
    if docker_path:
        logger.debug(f"Docker found in PATH: {docker_path}")
        return docker_path

    for path in STANDARD_PATHS:
        if path.exists():
            logger.debug(f"Found Docker at: {path}")
            return str(path)

    logger.info("Docker executable not found")
    return None


def get_docker_command(configured: str | None = None) -> list[str]:
    """
    Get the Docker command prefix.

    Returns:
        List containing the docker command. Falls back to just "docker" and
        lets the process runner report a missing executable.
    """
    docker_path = find_docker_executable(configured)
    if docker_path:
        return [docker_path]

    return ["docker"]
