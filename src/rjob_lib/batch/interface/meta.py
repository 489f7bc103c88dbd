# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import os
from abc import ABCMeta

from rjob_lib.core.config import CFG
from rjob_lib.core.error import RJobError
from rjob_lib.core.logger import get_logger
from rjob_lib.remote.session import RemoteSession

from .interface import BatchInterface

logger = get_logger(__name__)


class BatchMeta(ABCMeta):
    """
    Metaclass for batch system classes.
    """

    # registry of supported batch systems
    _registry: dict[str, type[BatchInterface]] = {}

    def __str__(cls: type[BatchInterface]):
        """
        Get the string representation of the batch system class.
        """
        return cls.envName()

    @classmethod
    def register(mcs, batch_cls: type[BatchInterface]):
        """
        Register a batch system class in the metaclass registry.

        Args:
            batch_cls: Subclass of BatchInterface to register.
        """
        mcs._registry[batch_cls.envName()] = batch_cls

    @classmethod
    def fromStr(mcs, name: str) -> type[BatchInterface]:
        """
        Return the batch system class registered with the given name.

        Raises:
            RJobError: If no class is registered for the given name.
        """
        try:
            return mcs._registry[name]
        except KeyError as e:
            raise RJobError(f"No batch system registered as '{name}'.") from e

    @classmethod
    def guess(mcs, session: RemoteSession) -> type[BatchInterface]:
        """
        Attempt to select an appropriate batch system implementation.

        The method scans through all registered batch systems in the order
        they were registered and returns the first one that reports itself
        as available on the remote node.

        Raises:
            RJobError: If no available batch system is found among the registered ones.

        Returns:
            type[BatchInterface]: The first available batch system class.
        """
        for BatchSystem in mcs._registry.values():
            if BatchSystem.isAvailable(session):
                logger.debug(f"Guessed batch system: {str(BatchSystem)}.")
                return BatchSystem

        # raise error if there is no available batch system
        raise RJobError(
            "Could not guess a batch system. No registered batch system available."
        )

    @classmethod
    def obtain(mcs, name: str | None, session: RemoteSession) -> type[BatchInterface]:
        """
        Obtain a batch system class by name, environment variable, or guessing.

        Args:
            name (str | None): Optional name of the batch system to obtain.
            session (RemoteSession): Session used for guessing.

        Returns:
            type[BatchInterface]: The selected batch system class.

        Raises:
            RJobError: If the requested batch system is not registered
                or if no batch system can be guessed.
        """
        if name:
            return mcs.fromStr(name)

        if env_name := os.environ.get(CFG.env_vars.batch_system):
            logger.debug(
                f"Using batch system name from an environment variable: {env_name}."
            )
            return mcs.fromStr(env_name)

        return mcs.guess(session)


def batch_system(cls):
    """
    Class decorator registering a batch system implementation in `BatchMeta`.
    """
    BatchMeta.register(cls)
    return cls
