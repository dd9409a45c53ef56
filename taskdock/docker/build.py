"""
Image build output parsing

Turns the line-oriented output of `docker build` into progress updates while
the build runs, and finds the built image's ID once it has finished.
"""

import logging
import re
from collections.abc import Callable

from taskdock.docker.exceptions import ImageBuildFailedError
from taskdock.docker.models import DockerImage, DockerImageBuildProgress
from taskdock.process import ProcessOutput

logger = logging.getLogger(__name__)

STEP_LINE_PATTERN = re.compile(r"^Step (\d+)/(\d+) : (.*)$")
IMAGE_ID_PATTERN = re.compile(r"^Successfully built (.*)$", re.MULTILINE)


class BuildProgressParser:
    """
    Emits a DockerImageBuildProgress for every `Step n/total : ...` line

    Lines are fed one at a time from the thread reading the build's output,
    and the callback runs synchronously on that thread, so it should return
    quickly.
    """

    def __init__(self, on_status_update: Callable[[DockerImageBuildProgress], None]):
        self.on_status_update = on_status_update

    def __call__(self, line: str) -> None:
        progress = parse_progress_line(line)
        if progress is not None:
            logger.debug(f"Build step {progress.current_step}/{progress.total_steps}: {progress.message}")
            self.on_status_update(progress)


def parse_progress_line(line: str) -> DockerImageBuildProgress | None:
    """
    Parse one line of build output

    Returns:
        The progress it reports, or None if it is not a step line
    """
    match = STEP_LINE_PATTERN.match(line.rstrip("\r\n"))
    if match is None:
        return None

    return DockerImageBuildProgress(
        current_step=int(match.group(1)),
        total_steps=int(match.group(2)),
        message=match.group(3),
    )


def image_id_from_output(output: str) -> str:
    """
    Find the ID of the built image in the build's full output

    Commands run during the build (pip, for example) can print their own
    "Successfully built ..." lines before the daemon's final one, so the last
    match is the image ID.

    Raises:
        ImageBuildFailedError: If the output has no "Successfully built" line
    """
    matches = IMAGE_ID_PATTERN.findall(output)
    if not matches:
        raise ImageBuildFailedError(
            "Could not find the ID of the built image in the output from Docker. "
            f"Output from Docker was: {output}",
            output=output,
        )

    return matches[-1].strip()


def image_from_build_result(result: ProcessOutput) -> DockerImage:
    """
    Check a finished build's exit code and extract the built image

    Raises:
        ImageBuildFailedError: If the build exited with a non-zero code, or
            its output does not name the built image
    """
    if result.exit_code != 0:
        logger.error(f"Image build failed with exit code {result.exit_code}")
        raise ImageBuildFailedError(
            f"Image build failed. Output from Docker was: {result.output}",
            output=result.output,
        )

    return DockerImage(image_id_from_output(result.output))
