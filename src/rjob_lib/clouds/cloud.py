# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Clouds are the configured providers of remote execution nodes.

Each cloud is defined by a `[[clouds]]` table of the rjob configuration:

    [[clouds]]
    name = "cluster"
    labels = ["gpu", "large"]
    queue_type = "normal"
    host = "login.cluster.org"
    work_dir = "rjob/work"
    exec_dir = "rjob/exec"

A job asks for a label and is sent to the first cloud able to provision it.
The cloud decides the queue the job is submitted to and supplies
the defaults for the node and its directories.
"""

from dataclasses import dataclass, field
from typing import Self

from rjob_lib.core.config import CFG, CloudSettings
from rjob_lib.core.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Cloud:
    """
    Provider of a remote execution node with a batch system.
    """

    name: str
    labels: tuple[str, ...] = field(default_factory=tuple)
    queue_type: str | None = None
    batch_system: str | None = None
    host: str | None = None
    work_dir: str | None = None
    exec_dir: str | None = None

    @classmethod
    def fromSettings(cls, settings: CloudSettings) -> Self:
        return cls(
            name=settings.name,
            labels=tuple(settings.labels),
            queue_type=settings.queue_type or None,
            batch_system=settings.batch_system or None,
            host=settings.host or None,
            work_dir=settings.work_dir or None,
            exec_dir=settings.exec_dir or None,
        )

    def canProvision(self, label: str | None) -> bool:
        """
        Return True if the cloud can run jobs requiring `label`.

        A job without a label can run anywhere and a cloud without labels
        accepts any job.
        """
        if not label or not self.labels:
            return True

        return label in self.labels


def load_clouds(settings: list[CloudSettings] | None = None) -> list[Cloud]:
    """
    Return the configured clouds in the order of configuration.
    """
    return [
        Cloud.fromSettings(s) for s in (CFG.clouds if settings is None else settings)
    ]


def find_cloud(label: str | None, clouds: list[Cloud] | None = None) -> Cloud | None:
    """
    Return the first cloud able to provision `label` that defines a queue.

    Args:
        label (str | None): Label required by the job.
        clouds (list[Cloud] | None): Clouds to search. Defaults to the configured clouds.

    Returns:
        Cloud | None: The matching cloud or None if there is no such cloud.
    """
    for cloud in load_clouds() if clouds is None else clouds:
        if cloud.canProvision(label) and cloud.queue_type:
            logger.debug(f"Label '{label}' is provisioned by cloud '{cloud.name}'.")
            return cloud

    logger.debug(f"No cloud provisions label '{label}'.")
    return None
