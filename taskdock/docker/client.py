"""
Container, image and network lifecycle

DockerClient is the entry point the rest of the task tool uses. It combines
daemon API calls with docker CLI invocations (build, pull, run) and is the
only place where their failures are turned into taskdock errors.
"""

import logging
from collections.abc import Callable

from taskdock.console import ConsoleInfo
from taskdock.core.config import get_settings
from taskdock.docker import health
from taskdock.docker.api import DockerAPI
from taskdock.docker.build import BuildProgressParser, image_from_build_result
from taskdock.docker.exceptions import ImagePullFailedError
from taskdock.docker.executable import get_docker_command
from taskdock.docker.models import (
    DockerContainer,
    DockerContainerCreationRequest,
    DockerContainerRunResult,
    DockerImage,
    DockerImageBuildProgress,
    DockerNetwork,
    DockerVersionInfoRetrievalResult,
    HealthStatus,
)
from taskdock.docker.schemas import DockerHealthCheckResult
from taskdock.process import ProcessRunner

logger = logging.getLogger(__name__)


class DockerClient:
    """
    Lifecycle operations on Docker images, containers and networks

    Example:
        client = DockerClient()
        image = client.build("./build-env", {}, lambda p: print(p.message))
        network = client.create_new_bridge_network()
        container = client.create(DockerContainerCreationRequest(image, network, ["make"], "build-env"))
        result = client.run(container)
    """

    def __init__(
        self,
        api: DockerAPI | None = None,
        process_runner: ProcessRunner | None = None,
        console_info: ConsoleInfo | None = None,
        docker_command: list[str] | None = None,
    ):
        """
        Initialize Docker client

        Args:
            api: Daemon API client (default: one built from settings)
            process_runner: Runs docker CLI commands (default: ProcessRunner())
            console_info: Terminal information (default: ConsoleInfo())
            docker_command: docker CLI command prefix (default: discovered)
        """
        self.api = api or DockerAPI()
        self.process_runner = process_runner or ProcessRunner()
        self.console_info = console_info or ConsoleInfo()
        self.docker_command = docker_command or get_docker_command(get_settings().docker_executable)

    # Images

    def build(
        self,
        build_directory: str,
        build_args: dict[str, str],
        on_status_update: Callable[[DockerImageBuildProgress], None],
    ) -> DockerImage:
        """
        Build an image from a build context directory

        Args:
            build_directory: Directory containing the Dockerfile
            build_args: Values for the Dockerfile's ARG instructions
            on_status_update: Called with each step as the build reaches it

        Returns:
            The built image, identified by its ID

        Raises:
            ImageBuildFailedError: If the build fails; carries the build's full output
        """
        logger.info(f"Building image from {build_directory}")

        command = self.docker_command + ["build"]
        for name, value in build_args.items():
            command += ["--build-arg", f"{name}={value}"]
        command.append(build_directory)

        result = self.process_runner.run_and_stream_output(command, BuildProgressParser(on_status_update))
        image = image_from_build_result(result)

        logger.info(f"Image built: {image.id}")
        return image

    def pull_image(self, image_name: str) -> DockerImage:
        """
        Pull an image unless it is already present locally

        Raises:
            ImagePullFailedError: If checking for the image or pulling it fails
        """
        if not self._has_image(image_name):
            logger.info(f"Pulling image {image_name}")
            result = self.process_runner.run_and_capture_output(self.docker_command + ["pull", image_name])

            if result.exit_code != 0:
                logger.error(f"Pulling image {image_name} failed: {result.output.strip()}")
                raise ImagePullFailedError(
                    f"Pulling image '{image_name}' failed: {result.output.strip()}",
                    image_name,
                )

            logger.info(f"Image pulled: {image_name}")
        else:
            logger.info(f"Image {image_name} already exists locally, skipping pull")

        return DockerImage(image_name)

    def _has_image(self, image_name: str) -> bool:
        result = self.process_runner.run_and_capture_output(self.docker_command + ["images", "-q", image_name])

        if result.exit_code != 0:
            raise ImagePullFailedError(
                f"Checking if image '{image_name}' has already been pulled failed: {result.output.strip()}",
                image_name,
            )

        return result.output.strip() != ""

    # Containers

    def create(self, creation_request: DockerContainerCreationRequest) -> DockerContainer:
        """
        Create a container

        Raises:
            ContainerCreationFailedError: If the daemon rejects the request
        """
        return self.api.create_container(creation_request)

    def run(self, container: DockerContainer) -> DockerContainerRunResult:
        """
        Start a container attached to this terminal and wait for it to exit

        With an interactive terminal on stdin, stdin is attached too so the
        user can interact with the container's command.

        Returns:
            The container's exit code
        """
        command = self.docker_command + ["start", "--attach"]
        if self.console_info.stdin_is_tty:
            command.append("--interactive")
        command.append(container.id)

        exit_code = self.process_runner.run(command)
        logger.info(f"Container {container.id} exited with code {exit_code}")
        return DockerContainerRunResult(exit_code)

    def start(self, container: DockerContainer) -> None:
        """Start a container in the background"""
        self.api.start_container(container)

    def stop(self, container: DockerContainer) -> None:
        self.api.stop_container(container)

    def remove(self, container: DockerContainer) -> None:
        self.api.remove_container(container)

    def wait_for_health_status(self, container: DockerContainer) -> HealthStatus:
        """
        Wait for a container's health check to report

        Raises:
            ContainerHealthCheckError: If the daemon cannot be asked
        """
        return health.wait_for_health_status(self.api, container)

    def get_last_health_check_result(self, container: DockerContainer) -> DockerHealthCheckResult:
        return health.get_last_health_check_result(self.api, container)

    # Networks

    def create_new_bridge_network(self) -> DockerNetwork:
        return self.api.create_network()

    def delete_network(self, network: DockerNetwork) -> None:
        self.api.delete_network(network)

    # System Information

    def get_docker_version_info(self) -> DockerVersionInfoRetrievalResult:
        """
        Get the daemon's version information without ever raising

        Used for compatibility checks at startup, which must not abort the
        run just because the daemon could not be asked.
        """
        try:
            info = self.api.get_server_version_info()
        except Exception as e:
            logger.warning(f"Could not get Docker version information: {e}")
            return DockerVersionInfoRetrievalResult.failure(
                f"Could not get Docker version information because {type(e).__name__} was thrown: {_message_of(e)}"
            )

        return DockerVersionInfoRetrievalResult.success(info)

    def check_if_docker_is_available(self) -> bool:
        """
        Check that the docker CLI can be run

        Returns:
            True if `docker --version` succeeds; False on any failure
        """
        try:
            result = self.process_runner.run_and_capture_output(self.docker_command + ["--version"])
        except Exception as e:
            logger.info(f"Docker is not available: {e}")
            return False

        if result.exit_code != 0:
            logger.info(f"Docker is not available: 'docker --version' exited with code {result.exit_code}")
            return False

        return True


def _message_of(error: Exception) -> str:
    return getattr(error, "message", None) or str(error)
