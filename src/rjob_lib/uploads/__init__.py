# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Files uploaded to the controller once and staged with every job.

- `UploadRegistry`: stores the uploaded files and their YAML index.
- `UploadsPresenter`: renders the list of uploads as a Rich panel.
"""

from .presenter import UploadsPresenter
from .registry import UploadRegistry

__all__ = [
    "UploadRegistry",
    "UploadsPresenter",
]
