# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from enum import Enum


class StatusClass(Enum):
    """
    Classification of a scheduler-specific status token.
    """

    PENDING = 1
    RUNNING = 2
    SUCCESS = 3
    FAILURE = 4
    ABORTED = 5
    UNKNOWN = 6

    def __str__(self) -> str:
        """
        Return the lowercase string representation of the enum variant.

        Returns:
            str: The name of the class in lowercase.
        """
        return self.name.lower()

    def isTerminal(self) -> bool:
        """
        Return True if a job in this class will not change its state anymore.
        """
        return self in {StatusClass.SUCCESS, StatusClass.FAILURE, StatusClass.ABORTED}
