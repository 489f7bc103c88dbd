# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Staging of job inputs, the job script and job outputs.

- `StagingManifest`: the per-run inputs and previously uploaded files
  staged for one execution, producing the copy preamble of the job script.

- `Stager`: copies inputs through the controller's shared area into the
  remote working directory, composes and stages the job script, and
  downloads the requested outputs after the job finishes.
"""

from .manifest import StagingManifest
from .stager import Stager

__all__ = [
    "StagingManifest",
    "Stager",
]
