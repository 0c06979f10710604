"""Shared typed models.

This module defines immutable value types used by the resolver,
the binary codec, and the required-ops bootstrap.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Literal

from core.constants import OP_ID_SEPARATOR
from core.errors import KtsrResolverError

BuildVariant = Literal["full", "minimal"]
MergePolicy = Literal["keep-self", "keep-other", "fail"]


class ArgType(IntEnum):
    """Kind of a kernel argument position."""

    INPUT = 0
    OUTPUT = 1


@dataclass(frozen=True, order=True)
class OpIdentifier:
    """Identifies one operator variant.

    Attributes:
        domain: Operator domain, empty string for the default ONNX domain.
        op_type: Operator type name.
        since_version: First schema version this variant applies to.
    """

    domain: str
    op_type: str
    since_version: int

    def __post_init__(self) -> None:
        for field_name in ("domain", "op_type"):
            value = getattr(self, field_name)
            if not isinstance(value, str):
                raise KtsrResolverError(
                    f"Invalid op identifier {field_name}: "
                    f"expected str, got {type(value).__name__}."
                )
        version = self.since_version
        if isinstance(version, bool) or not isinstance(version, int) or version < 0:
            raise KtsrResolverError(
                f"Invalid since_version for op '{self.op_type}': "
                f"expected non-negative integer, got {version!r}."
            )

    def __str__(self) -> str:
        return OP_ID_SEPARATOR.join((self.domain, self.op_type, str(self.since_version)))


@dataclass(frozen=True)
class ArgTypeAndIndex:
    """One constrained argument position.

    Attributes:
        arg_type: Whether the position is an input or an output.
        index: Zero-based position within the inputs or outputs.
    """

    arg_type: ArgType
    index: int

    def __str__(self) -> str:
        prefix = "in" if self.arg_type == ArgType.INPUT else "out"
        return f"{prefix}{self.index}"


def input_arg(index: int) -> ArgTypeAndIndex:
    """Build an input argument position."""
    return ArgTypeAndIndex(arg_type=ArgType.INPUT, index=index)


def output_arg(index: int) -> ArgTypeAndIndex:
    """Build an output argument position."""
    return ArgTypeAndIndex(arg_type=ArgType.OUTPUT, index=index)
