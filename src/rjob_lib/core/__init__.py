# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Core infrastructure for rjob.

This module collects the foundational classes, utilities, and helpers used
across the rjob codebase. It provides configuration, error types, structured
logging, cooperative cancellation, CLI help formatting and small shared helpers.
"""
