"""Kernel type-string resolver exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class KtsrError(Exception):
    """Base exception for all resolver failures."""


class KtsrConfigError(KtsrError):
    """Raised for invalid runtime configuration."""


class KtsrResolverError(KtsrError):
    """Raised for invalid resolver contents or mutations."""


class KtsrLookupError(KtsrResolverError):
    """Raised when an op or kernel type string is not resolvable."""


class KtsrMergeConflictError(KtsrResolverError):
    """Raised when a fail-on-conflict merge meets differing tables."""


class KtsrEncodeError(KtsrError):
    """Raised when a resolver cannot be serialized."""


class KtsrVerificationError(KtsrError):
    """Raised when a buffer fails identifier or structural verification."""


class KtsrDecodeError(KtsrError):
    """Raised when a verified buffer holds a semantically invalid record."""


class KtsrBuildInvariantError(KtsrError):
    """Raised when the embedded required-ops artifact is unusable."""


class KtsrFileError(KtsrError):
    """Raised for resolver file read and write failures."""


class KtsrDependencyError(KtsrError):
    """Raised when an optional runtime dependency is missing."""
