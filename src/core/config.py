"""Runtime configuration model for the resolver toolchain.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import cast

from core.constants import (
    DEFAULT_BUILD_VARIANT,
    DEFAULT_MERGE_POLICY,
    SUPPORTED_BUILD_VARIANTS,
    SUPPORTED_MERGE_POLICIES,
)
from core.errors import KtsrConfigError
from core.types import BuildVariant, MergePolicy


@dataclass(frozen=True)
class KtsrConfig:
    """Validated runtime configuration.

    Attributes:
        build_variant: ``full`` enables encoding, ``minimal`` is decode-only.
        merge_policy: Default conflict policy for tooling merges.
    """

    build_variant: BuildVariant = cast(BuildVariant, DEFAULT_BUILD_VARIANT)
    merge_policy: MergePolicy = cast(MergePolicy, DEFAULT_MERGE_POLICY)

    @classmethod
    def from_env(cls) -> "KtsrConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            KtsrConfigError: If environment values are invalid.
        """
        build_variant = parse_build_variant(
            os.getenv("KTSR_BUILD_VARIANT", DEFAULT_BUILD_VARIANT)
        )
        merge_policy = parse_merge_policy(os.getenv("KTSR_MERGE_POLICY", DEFAULT_MERGE_POLICY))
        return cls(build_variant=build_variant, merge_policy=merge_policy)


def parse_build_variant(raw_value: str) -> BuildVariant:
    """Parse a build variant name.

    Args:
        raw_value: Raw string from environment or CLI.

    Returns:
        Normalized build variant.

    Raises:
        KtsrConfigError: If value is not a supported variant.
    """
    value = raw_value.strip().lower()
    if value not in SUPPORTED_BUILD_VARIANTS:
        raise KtsrConfigError(
            "Invalid KTSR_BUILD_VARIANT value: "
            f"expected one of {', '.join(SUPPORTED_BUILD_VARIANTS)}, got '{raw_value}'."
        )
    return cast(BuildVariant, value)


def parse_merge_policy(raw_value: str) -> MergePolicy:
    """Parse a merge conflict policy name.

    Args:
        raw_value: Raw string from environment or CLI.

    Returns:
        Normalized merge policy.

    Raises:
        KtsrConfigError: If value is not a supported policy.
    """
    value = raw_value.strip().lower()
    if value not in SUPPORTED_MERGE_POLICIES:
        raise KtsrConfigError(
            "Invalid KTSR_MERGE_POLICY value: "
            f"expected one of {', '.join(SUPPORTED_MERGE_POLICIES)}, got '{raw_value}'."
        )
    return cast(MergePolicy, value)
