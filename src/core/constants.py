"""Core constants used across resolver modules.

This module centralizes format and domain constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

FILE_IDENTIFIER = b"ktsr"
OP_ID_SEPARATOR = ":"
ONNX_DOMAIN = ""
MS_DOMAIN = "com.microsoft"
UINT32_MAX = 2**32 - 1
DEFAULT_BUILDER_SIZE = 1024
VERIFIER_MAX_DEPTH = 64
VERIFIER_MAX_TABLES = 1_000_000
VERIFIER_MAX_BUFFER_SIZE = 2**31 - 1
DEFAULT_BUILD_VARIANT = "full"
SUPPORTED_BUILD_VARIANTS = ("full", "minimal")
DEFAULT_MERGE_POLICY = "keep-self"
SUPPORTED_MERGE_POLICIES = ("keep-self", "keep-other", "fail")
REQUIRED_OPS_ARTIFACT_FILE_NAME = "required_ops.ktsr"
