# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Value objects describing a single rjob execution.

- `JobSpec`: the immutable, caller-supplied description of the job.
- `JobIdentity`: the random name of the staged job script.
- `JobState`: the mutable state owned by the orchestrator during one run.
- `StatusClass`: the partition of scheduler status tokens.
"""

from .identity import JobIdentity
from .job_spec import JobSpec
from .job_state import JobState
from .states import StatusClass

__all__ = [
    "JobIdentity",
    "JobSpec",
    "JobState",
    "StatusClass",
]
