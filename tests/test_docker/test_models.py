"""
Tests for Docker data models and daemon response parsing
"""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from taskdock.docker.exceptions import InvalidContainerRequestError
from taskdock.docker.models import (
    DockerContainerCreationRequest,
    DockerEvent,
    DockerImage,
    DockerNetwork,
    DockerVersionInfoRetrievalResult,
    HealthCheckConfig,
    PortMapping,
    UserAndGroup,
    VolumeMount,
    duration_to_nanoseconds,
)
from taskdock.docker.schemas import (
    DockerContainerHealthCheckConfig,
    DockerEventMessage,
    DockerVersionResponse,
)


def make_request(**overrides) -> DockerContainerCreationRequest:
    values = dict(
        image=DockerImage("the-image"),
        network=DockerNetwork("the-network"),
        command=["doStuff"],
        hostname="build-env",
    )
    values.update(overrides)
    return DockerContainerCreationRequest(**values)


class TestContainerCreationRequest:
    """Tests for DockerContainerCreationRequest"""

    def test_minimal_request(self):
        """Test the body for a request with only the required fields"""
        body = make_request().to_json()

        assert body == {
            "AttachStdin": True,
            "AttachStdout": True,
            "AttachStderr": True,
            "Tty": True,
            "OpenStdin": True,
            "StdinOnce": True,
            "Image": "the-image",
            "Hostname": "build-env",
            "Env": [],
            "ExposedPorts": {},
            "HostConfig": {
                "NetworkMode": "the-network",
                "Binds": [],
                "PortBindings": {},
            },
            "NetworkingConfig": {
                "EndpointsConfig": {
                    "the-network": {"Aliases": ["build-env"]},
                },
            },
            "Cmd": ["doStuff"],
        }

    def test_full_request(self):
        """Test the body for a request using every option"""
        request = make_request(
            network_alias="database",
            environment={"SOME_VAR": "some value", "A_VAR": "1"},
            working_directory="/workdir",
            volume_mounts=frozenset(
                {
                    VolumeMount("/local", "/remote"),
                    VolumeMount("/cache", "/root/.cache", "cached"),
                }
            ),
            port_mappings=frozenset({PortMapping(8080, 80)}),
            health_check=HealthCheckConfig(
                test=["CMD", "/health.sh"],
                interval=timedelta(seconds=2),
                timeout=timedelta(seconds=1),
                start_period=timedelta(milliseconds=1500),
                retries=10,
            ),
            user_and_group=UserAndGroup(1000, 1001),
        )

        body = request.to_json()

        assert body["Env"] == ["A_VAR=1", "SOME_VAR=some value"]
        assert body["WorkingDir"] == "/workdir"
        assert body["HostConfig"]["Binds"] == ["/cache:/root/.cache:cached", "/local:/remote"]
        assert body["ExposedPorts"] == {"80/tcp": {}}
        assert body["HostConfig"]["PortBindings"] == {"80/tcp": [{"HostIp": "", "HostPort": "8080"}]}
        assert body["NetworkingConfig"]["EndpointsConfig"]["the-network"] == {"Aliases": ["database"]}
        assert body["Healthcheck"] == {
            "Test": ["CMD", "/health.sh"],
            "Interval": 2_000_000_000,
            "Timeout": 1_000_000_000,
            "StartPeriod": 1_500_000_000,
            "Retries": 10,
        }
        assert body["User"] == "1000:1001"

    def test_empty_command_uses_image_default(self):
        """Test that an empty command leaves Cmd out"""
        assert "Cmd" not in make_request(command=[]).to_json()

    @pytest.mark.parametrize("hostname", ["build-env", "a", "db.internal", "x1-y2"])
    def test_valid_hostnames(self, hostname):
        """Test that RFC 1123 hostnames are accepted"""
        assert make_request(hostname=hostname).hostname == hostname

    @pytest.mark.parametrize("hostname", ["", "-leading", "trailing-", "under_score", "a..b", "a" * 64])
    def test_invalid_hostnames(self, hostname):
        """Test that invalid hostnames are rejected"""
        with pytest.raises(InvalidContainerRequestError):
            make_request(hostname=hostname)


class TestValueTypes:
    """Tests for the smaller value types"""

    def test_duration_to_nanoseconds(self):
        """Test conversion to the daemon's duration unit"""
        assert duration_to_nanoseconds(timedelta(seconds=1, microseconds=5)) == 1_000_005_000

    def test_invalid_port(self):
        """Test that out-of-range ports are rejected"""
        with pytest.raises(InvalidContainerRequestError):
            PortMapping(0, 80)

    def test_negative_retries(self):
        """Test that negative health check retries are rejected"""
        with pytest.raises(InvalidContainerRequestError):
            HealthCheckConfig(test=["CMD", "true"], retries=-1)

    def test_failed_version_result(self):
        """Test the description of a failed version lookup"""
        result = DockerVersionInfoRetrievalResult.failure("daemon not running")

        assert str(result) == "(could not get Docker version information: daemon not running)"


class TestDaemonSchemas:
    """Tests for parsing daemon responses"""

    def test_health_check_config_defaults(self):
        """Test that a null health check config parses as disabled"""
        config = DockerContainerHealthCheckConfig.model_validate(
            {"Test": None, "Interval": None, "Retries": None}
        )

        assert not config.enabled
        assert config.interval == timedelta(0)
        assert config.retries == 0

    def test_health_check_negative_retries(self):
        """Test that negative retries from the daemon are rejected"""
        with pytest.raises(ValidationError):
            DockerContainerHealthCheckConfig.model_validate({"Test": ["CMD", "true"], "Retries": -1})

    def test_event_with_status(self):
        """Test parsing an event with a status field"""
        message = DockerEventMessage.model_validate_json('{"status": "die", "Action": "die", "id": "abc"}')

        assert message.to_event() == DockerEvent("die")

    def test_event_without_status_or_action(self):
        """Test that an event with neither field is rejected"""
        with pytest.raises(ValidationError):
            DockerEventMessage.model_validate_json('{"id": "abc"}')

    def test_version_with_suffix(self):
        """Test that a pre-release suffix is kept in the string but not the parsed version"""
        response = DockerVersionResponse.model_validate(
            {"Version": "24.0.7-rc1", "ApiVersion": "1.43", "MinAPIVersion": "1.12", "GitCommit": "311b9ff"}
        )

        info = response.to_version_info()

        assert str(info.version) == "24.0.7"
        assert info.version_string == "24.0.7-rc1"
