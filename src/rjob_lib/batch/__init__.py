# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Batch system backends supported by rjob.

Importing this package registers all bundled backends in `BatchMeta`.
"""

from .interface import BatchInterface, BatchMeta, batch_system
from .lsf import LSF

__all__ = [
    "BatchInterface",
    "BatchMeta",
    "LSF",
    "batch_system",
]
