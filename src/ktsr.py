"""Public SDK surface for the kernel type-string resolver.

This module provides a stable import path for layout transformation and
build tooling. It re-exports the resolver, codec, and bootstrap entry points.
"""

from __future__ import annotations

from core.config import KtsrConfig
from core.errors import (
    KtsrBuildInvariantError,
    KtsrDecodeError,
    KtsrEncodeError,
    KtsrError,
    KtsrLookupError,
    KtsrMergeConflictError,
    KtsrVerificationError,
)
from core.types import ArgType, ArgTypeAndIndex, OpIdentifier, input_arg, output_arg
from layout.bootstrap import (
    ensure_required_ops_present,
    find_required_ops_drift,
    load_required_ops_resolver,
    regenerate_required_ops_artifact,
)
from layout.required_ops import build_required_ops_resolver, get_required_op_identifiers
from ortformat.buffer_io import read_resolver_file, write_resolver_file
from ortformat.codec import FormatCodec, decode_resolver
from resolver.kernel_type_str_resolver import KernelTypeStrResolver
from resolver.type_constraint_table import TypeConstraintTable

__all__ = [
    "ArgType",
    "ArgTypeAndIndex",
    "FormatCodec",
    "KernelTypeStrResolver",
    "KtsrBuildInvariantError",
    "KtsrConfig",
    "KtsrDecodeError",
    "KtsrEncodeError",
    "KtsrError",
    "KtsrLookupError",
    "KtsrMergeConflictError",
    "KtsrVerificationError",
    "OpIdentifier",
    "TypeConstraintTable",
    "build_required_ops_resolver",
    "decode_resolver",
    "ensure_required_ops_present",
    "find_required_ops_drift",
    "get_required_op_identifiers",
    "input_arg",
    "load_required_ops_resolver",
    "output_arg",
    "read_resolver_file",
    "regenerate_required_ops_artifact",
    "write_resolver_file",
]
