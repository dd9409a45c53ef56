"""
Docker Engine API endpoint definitions
"""


class DockerEndpoints:
    """
    Docker Engine API endpoints

    All endpoints are relative to the versioned base path (e.g., /v1.37)
    """

    # Containers
    CONTAINER_CREATE = "/containers/create"
    CONTAINER_INSPECT = "/containers/{container_id}/json"
    CONTAINER_START = "/containers/{container_id}/start"
    CONTAINER_STOP = "/containers/{container_id}/stop"
    CONTAINER_REMOVE = "/containers/{container_id}"

    # Networks
    NETWORK_CREATE = "/networks/create"
    NETWORK_DELETE = "/networks/{network_id}"

    # System
    EVENTS = "/events"
    VERSION = "/version"
