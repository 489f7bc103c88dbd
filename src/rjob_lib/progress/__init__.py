# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Incremental streaming of the output of a running job.
"""

from .tracker import ProgressTracker, print_job_output

__all__ = [
    "ProgressTracker",
    "print_job_output",
]
