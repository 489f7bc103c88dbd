# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Exception types used throughout rjob.

This module defines the rjob-specific exceptions: the common recoverable
error, failures of remote commands and transfers, staging and submission
failures, and the cancellation signal raised when an orchestration is
interrupted. Each error carries an associated exit code used by rjob commands
to report failures consistently.
"""

from rjob_lib.core.config import CFG


class RJobError(Exception):
    """Common exception type for all recoverable rjob errors."""

    exit_code = CFG.exit_codes.default


class RemoteCommandError(RJobError):
    """Raised when a command or a file transfer on the remote node fails."""

    pass


class StagingError(RJobError):
    """Raised when input files or the job script cannot be staged."""

    pass


class SubmissionError(RJobError):
    """Raised when the batch system refuses to accept the job."""

    pass


class JobCancelled(Exception):
    """
    Raised when the orchestration of a job is cancelled.

    Not an error: the orchestrator kills the job and reports it as aborted.
    """

    pass
