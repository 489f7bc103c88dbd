# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Access to the remote execution node.

`RemoteSession` executes shell commands on the node (over SSH, or directly if
the node is the current machine), shuttles single-shot command output back
through the communication file, and copies files between the controller and
the node using rsync.
"""

from .session import RemoteSession

__all__ = ["RemoteSession"]
