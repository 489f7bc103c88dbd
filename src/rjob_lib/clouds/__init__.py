# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from .cloud import Cloud, find_cloud, load_clouds

__all__ = [
    "Cloud",
    "find_cloud",
    "load_clouds",
]
