# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Orchestration of a single job: staging, submission, polling, output
streaming, cancellation, and cleanup.
"""

from .orchestrator import Orchestrator

__all__ = [
    "Orchestrator",
]
