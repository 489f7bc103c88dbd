# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Core implementation of the rjob command-line tool.

rjob runs a single long-running job on a batch system reachable through
a remote execution node. It stages the job's inputs and script onto the
node, submits the job, polls its state while streaming its output,
downloads the requested outputs, and removes every file staged for the job.
Cancelling a run kills the job.

The package provides the batch-system abstraction and its LSF backend,
the remote session over SSH and rsync, file staging, progress tracking,
cleanup, cloud selection, the registry of uploaded files, and the
`rjob` command-line interface.
"""
