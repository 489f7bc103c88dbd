# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
LSF backend for rjob.

The `LSF` class submits staged job scripts with `bsub`, queries their state
with `bjobs`, reads the output of running jobs with `bpeek`, extracts the
output of finished jobs from LSF's job report, and kills jobs with `bkill`.
All commands run on the remote node through a `RemoteSession`.
"""

from .lsf import LSF

__all__ = [
    "LSF",
]
