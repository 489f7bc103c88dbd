# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass


@dataclass
class JobState:
    """
    Mutable state of one orchestration.

    Created when the orchestration starts and discarded when it returns.
    Owned exclusively by the orchestrator and handed explicitly to the
    collaborators that need to read or advance it.
    """

    # Last status reported by the batch system ("" = never queried).
    status: str = ""

    # Number of output lines already delivered. Never decreases.
    offset: int = 0

    # Whether the next successful poll cycle should print the extracted output.
    pending_print: bool = True

    # Identifier assigned to the job by the batch system.
    handle: str | None = None

    # True if the job completed successfully, False otherwise, None while running.
    outcome: bool | None = None

    def advance(self, line_count: int) -> bool:
        """
        Move the offset forward to `line_count` if the output has grown.

        Args:
            line_count (int): Number of lines currently in the progress file.

        Returns:
            bool: True if the offset moved, False otherwise.
        """
        if self.offset < line_count:
            self.offset = line_count
            return True

        return False
