# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import uuid
from dataclasses import dataclass
from typing import Self

from rjob_lib.core.config import CFG


@dataclass(frozen=True)
class JobIdentity:
    """
    Unique name of the job script staged for one execution.

    The identity is random so that concurrent runs sharing the same node
    and the same shared area never collide.
    """

    name: str

    @classmethod
    def generate(cls) -> Self:
        """
        Create a new random identity of the form `JOB-<uuid4>`.
        """
        return cls(f"{CFG.channels.script_prefix}{uuid.uuid4()}")

    def __str__(self) -> str:
        return self.name
