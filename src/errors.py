"""
Centralized, typed exceptions for the app.

Decode failures are deliberately NOT represented here: the imaging layer
returns ``None`` for undecodable payloads and the engine branches on it.
"""

from __future__ import annotations


class PcleanError(Exception):
    """Base class for all custom errors in Photo Clean AI."""


class InvalidArgumentError(PcleanError, ValueError):
    """Raised when hashing/clustering parameters violate their constraints."""


class ConfigLoadError(PcleanError):
    """Raised when a configuration file is missing, unreadable, or invalid."""


class InvalidPathError(PcleanError):
    """Raised when a provided path does not exist or is not a directory."""


class InternalError(PcleanError):
    """Raised for unexpected internal failures to be reported gracefully."""
