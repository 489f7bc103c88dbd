# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Abstractions for integrating rjob with batch scheduling systems.

- `BatchInterface`: the capability interface every batch-system backend
  implements. It covers job submission, status queries and their
  classification, extraction of the job's incremental output, termination,
  and diagnostics of failed jobs.

- `BatchMeta`: a metaclass that registers available batch-system backends
  and provides mechanisms for selecting one by name, from an environment
  variable, or by probing the remote node. The `@batch_system` decorator
  registers implementations automatically.
"""

from .interface import BatchInterface
from .meta import BatchMeta, batch_system

__all__ = [
    "BatchInterface",
    "BatchMeta",
    "batch_system",
]
