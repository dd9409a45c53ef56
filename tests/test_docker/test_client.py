"""
Tests for DockerClient

The daemon API, process runner and terminal are all mocked; these tests check
the docker CLI commands issued and how their results are interpreted.
"""

from unittest.mock import MagicMock

import pytest
from packaging.version import Version

from taskdock.docker.client import DockerClient
from taskdock.docker.exceptions import (
    DaemonUnavailableError,
    ImageBuildFailedError,
    ImagePullFailedError,
)
from taskdock.docker.models import (
    DockerContainer,
    DockerContainerRunResult,
    DockerImage,
    DockerImageBuildProgress,
    DockerNetwork,
    DockerVersionInfo,
    HealthStatus,
)
from taskdock.process import ExecutableDoesNotExistError, ProcessOutput


@pytest.fixture
def api():
    return MagicMock()


@pytest.fixture
def process_runner():
    return MagicMock()


@pytest.fixture
def console_info():
    info = MagicMock()
    info.stdin_is_tty = False
    return info


@pytest.fixture
def client(api, process_runner, console_info):
    return DockerClient(
        api=api,
        process_runner=process_runner,
        console_info=console_info,
        docker_command=["docker"],
    )


class TestBuild:
    """Tests for DockerClient.build"""

    def test_build_command(self, client, process_runner):
        """Test that build args are passed before the build directory"""
        process_runner.run_and_stream_output.return_value = ProcessOutput(0, "Successfully built abc123\n")

        client.build("/path/to/build-env", {"SOME_ARG": "some_value", "OTHER": "x"}, lambda progress: None)

        command = process_runner.run_and_stream_output.call_args.args[0]
        assert command == [
            "docker",
            "build",
            "--build-arg",
            "SOME_ARG=some_value",
            "--build-arg",
            "OTHER=x",
            "/path/to/build-env",
        ]

    def test_returns_built_image(self, client, process_runner):
        """Test that the last 'Successfully built' line identifies the image"""
        process_runner.run_and_stream_output.return_value = ProcessOutput(
            0, "Successfully built not-this-one\nSuccessfully built abc123\n"
        )

        assert client.build("/build", {}, lambda progress: None) == DockerImage("abc123")

    def test_reports_progress(self, client, process_runner):
        """Test that step lines streamed by the process reach the callback"""

        def stream(command, on_line):
            on_line("Step 1/2 : FROM alpine")
            on_line(" ---> abcdef")
            on_line("Step 2/2 : RUN true")
            return ProcessOutput(0, "Successfully built abc123\n")

        process_runner.run_and_stream_output.side_effect = stream
        updates = []

        client.build("/build", {}, updates.append)

        assert updates == [
            DockerImageBuildProgress(1, 2, "FROM alpine"),
            DockerImageBuildProgress(2, 2, "RUN true"),
        ]

    def test_build_failure(self, client, process_runner):
        """Test that a failed build raises with Docker's output"""
        process_runner.run_and_stream_output.return_value = ProcessOutput(1, "Some output from Docker")

        with pytest.raises(ImageBuildFailedError) as exc_info:
            client.build("/build", {}, lambda progress: None)

        assert exc_info.value.message == "Image build failed. Output from Docker was: Some output from Docker"

    def test_build_failure_after_progress(self, client, process_runner):
        """Test that a non-zero exit fails with the exact output even if steps ran and an image ID was printed"""
        output = (
            "Step 1/2 : FROM alpine\n"
            " ---> abcdef\n"
            "Successfully built abc\n"
            "Step 2/2 : RUN exit 1\n"
            "The command '/bin/sh -c exit 1' returned a non-zero code: 1\n"
        )

        def stream(command, on_line):
            for line in output.splitlines():
                on_line(line)
            return ProcessOutput(1, output)

        process_runner.run_and_stream_output.side_effect = stream
        updates = []

        with pytest.raises(ImageBuildFailedError) as exc_info:
            client.build("/build", {}, updates.append)

        assert exc_info.value.output == output
        assert exc_info.value.message == f"Image build failed. Output from Docker was: {output}"
        assert updates == [
            DockerImageBuildProgress(1, 2, "FROM alpine"),
            DockerImageBuildProgress(2, 2, "RUN exit 1"),
        ]


class TestPullImage:
    """Tests for DockerClient.pull_image"""

    def test_skips_pull_when_present(self, client, process_runner):
        """Test that an image already present locally is not pulled again"""
        process_runner.run_and_capture_output.return_value = ProcessOutput(0, "abc123\n")

        assert client.pull_image("alpine:3.19") == DockerImage("alpine:3.19")
        process_runner.run_and_capture_output.assert_called_once_with(["docker", "images", "-q", "alpine:3.19"])

    def test_pulls_when_missing(self, client, process_runner):
        """Test that a missing image is pulled"""
        process_runner.run_and_capture_output.side_effect = [
            ProcessOutput(0, ""),
            ProcessOutput(0, "Status: Downloaded newer image for alpine:3.19\n"),
        ]

        assert client.pull_image("alpine:3.19") == DockerImage("alpine:3.19")
        assert process_runner.run_and_capture_output.call_args.args[0] == ["docker", "pull", "alpine:3.19"]

    def test_pull_failure(self, client, process_runner):
        """Test that a failed pull reports Docker's output"""
        process_runner.run_and_capture_output.side_effect = [
            ProcessOutput(0, ""),
            ProcessOutput(1, "Error: image not found\n"),
        ]

        with pytest.raises(ImagePullFailedError) as exc_info:
            client.pull_image("does-not-exist")

        assert exc_info.value.message == "Pulling image 'does-not-exist' failed: Error: image not found"
        assert exc_info.value.image_name == "does-not-exist"

    def test_check_failure(self, client, process_runner):
        """Test that failing to list images is reported as a pull failure"""
        process_runner.run_and_capture_output.return_value = ProcessOutput(1, "Cannot connect to the daemon\n")

        with pytest.raises(ImagePullFailedError) as exc_info:
            client.pull_image("alpine:3.19")

        assert exc_info.value.message == (
            "Checking if image 'alpine:3.19' has already been pulled failed: Cannot connect to the daemon"
        )
        process_runner.run_and_capture_output.assert_called_once()


class TestRun:
    """Tests for DockerClient.run"""

    def test_non_interactive(self, client, process_runner):
        """Test running without a terminal on stdin"""
        process_runner.run.return_value = 123

        result = client.run(DockerContainer("the-container-id"))

        assert result == DockerContainerRunResult(123)
        process_runner.run.assert_called_once_with(["docker", "start", "--attach", "the-container-id"])

    def test_interactive(self, client, process_runner, console_info):
        """Test that stdin is attached when it is a terminal"""
        console_info.stdin_is_tty = True
        process_runner.run.return_value = 0

        client.run(DockerContainer("the-container-id"))

        process_runner.run.assert_called_once_with(
            ["docker", "start", "--attach", "--interactive", "the-container-id"]
        )


class TestDelegation:
    """Tests for operations passed straight to the daemon API"""

    def test_create(self, client, api):
        """Test that create returns the API's container"""
        request = MagicMock()
        api.create_container.return_value = DockerContainer("abc123")

        assert client.create(request) == DockerContainer("abc123")
        api.create_container.assert_called_once_with(request)

    def test_container_lifecycle(self, client, api):
        """Test start, stop and remove"""
        container = DockerContainer("abc123")

        client.start(container)
        client.stop(container)
        client.remove(container)

        api.start_container.assert_called_once_with(container)
        api.stop_container.assert_called_once_with(container)
        api.remove_container.assert_called_once_with(container)

    def test_networks(self, client, api):
        """Test network creation and deletion"""
        api.create_network.return_value = DockerNetwork("the-network")

        network = client.create_new_bridge_network()
        client.delete_network(network)

        assert network == DockerNetwork("the-network")
        api.delete_network.assert_called_once_with(network)

    def test_wait_for_health_status(self, client, api):
        """Test that health waits go through the daemon API"""
        api.inspect_container.return_value.config.healthcheck.enabled = False

        assert client.wait_for_health_status(DockerContainer("abc123")) == HealthStatus.NO_HEALTH_CHECK


class TestGetDockerVersionInfo:
    """Tests for DockerClient.get_docker_version_info"""

    def test_success(self, client, api):
        """Test a successful version lookup"""
        info = DockerVersionInfo(Version("17.4.0"), "17.04.0-ce", "1.27", "1.12", "deadbee")
        api.get_server_version_info.return_value = info

        result = client.get_docker_version_info()

        assert result.succeeded
        assert result.info == info
        assert str(result) == (
            "17.04.0-ce (API version: 1.27, minimum supported API version: 1.12, commit: deadbee)"
        )

    def test_failure_is_returned_not_raised(self, client, api):
        """Test that errors are reported in the result"""
        api.get_server_version_info.side_effect = DaemonUnavailableError("Something went wrong")

        result = client.get_docker_version_info()

        assert not result.succeeded
        assert result.message == (
            "Could not get Docker version information because DaemonUnavailableError was thrown: "
            "Something went wrong"
        )

    def test_unexpected_exception(self, client, api):
        """Test that even non-taskdock exceptions are reported in the result"""
        api.get_server_version_info.side_effect = RuntimeError("boom")

        result = client.get_docker_version_info()

        assert result.message == "Could not get Docker version information because RuntimeError was thrown: boom"


class TestCheckIfDockerIsAvailable:
    """Tests for DockerClient.check_if_docker_is_available"""

    def test_available(self, client, process_runner):
        """Test that a working docker command is available"""
        process_runner.run_and_capture_output.return_value = ProcessOutput(0, "Docker version 24.0.7\n")

        assert client.check_if_docker_is_available() is True
        process_runner.run_and_capture_output.assert_called_once_with(["docker", "--version"])

    def test_non_zero_exit(self, client, process_runner):
        """Test that a failing docker command is not available"""
        process_runner.run_and_capture_output.return_value = ProcessOutput(1, "")

        assert client.check_if_docker_is_available() is False

    def test_missing_executable(self, client, process_runner):
        """Test that a missing executable is not available"""
        process_runner.run_and_capture_output.side_effect = ExecutableDoesNotExistError("docker")

        assert client.check_if_docker_is_available() is False
