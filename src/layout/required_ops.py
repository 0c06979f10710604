"""Authoritative list of ops layout transformation may insert.

Each entry carries the type-constraint table the op's schema produces:
type parameters map to the positions that use them, and formal
parameters with a fixed type (e.g. ``axes``) map under their own name.
The embedded ``required_ops.ktsr`` artifact must decode to exactly this
set; regenerate it whenever the list changes.
"""

from __future__ import annotations

from core.constants import MS_DOMAIN, ONNX_DOMAIN
from core.types import OpIdentifier, input_arg, output_arg
from resolver.kernel_type_str_resolver import KernelTypeStrResolver
from resolver.type_constraint_table import TypeConstraintTable

_PASSTHROUGH_T = TypeConstraintTable.from_pairs([("T", (input_arg(0), output_arg(0)))])
_PASSTHROUGH_V = TypeConstraintTable.from_pairs([("V", (input_arg(0), output_arg(0)))])
_GATHER = TypeConstraintTable.from_pairs(
    [
        ("T", (input_arg(0), output_arg(0))),
        ("Tind", (input_arg(1),)),
    ]
)
_AXES_INPUT = TypeConstraintTable.from_pairs(
    [
        ("T", (input_arg(0), output_arg(0))),
        ("axes", (input_arg(1),)),
    ]
)
_QLINEAR_CONV = TypeConstraintTable.from_pairs(
    [
        ("T1", (input_arg(0), input_arg(2))),
        ("T2", (input_arg(3), input_arg(5))),
        ("T3", (input_arg(7), output_arg(0))),
        ("T4", (input_arg(8),)),
        ("w_scale", (input_arg(4),)),
        ("x_scale", (input_arg(1),)),
        ("y_scale", (input_arg(6),)),
    ]
)

REQUIRED_OPS: tuple[tuple[OpIdentifier, TypeConstraintTable], ...] = (
    (OpIdentifier(ONNX_DOMAIN, "Gather", 1), _GATHER),
    (OpIdentifier(ONNX_DOMAIN, "Gather", 11), _GATHER),
    (OpIdentifier(ONNX_DOMAIN, "Gather", 13), _GATHER),
    (OpIdentifier(ONNX_DOMAIN, "Identity", 1), _PASSTHROUGH_T),
    (OpIdentifier(ONNX_DOMAIN, "Identity", 13), _PASSTHROUGH_T),
    (OpIdentifier(ONNX_DOMAIN, "Identity", 14), _PASSTHROUGH_V),
    (OpIdentifier(ONNX_DOMAIN, "Identity", 16), _PASSTHROUGH_V),
    (OpIdentifier(ONNX_DOMAIN, "Squeeze", 1), _PASSTHROUGH_T),
    (OpIdentifier(ONNX_DOMAIN, "Squeeze", 11), _PASSTHROUGH_T),
    (OpIdentifier(ONNX_DOMAIN, "Squeeze", 13), _AXES_INPUT),
    (OpIdentifier(ONNX_DOMAIN, "Transpose", 1), _PASSTHROUGH_T),
    (OpIdentifier(ONNX_DOMAIN, "Transpose", 13), _PASSTHROUGH_T),
    (OpIdentifier(ONNX_DOMAIN, "Unsqueeze", 1), _PASSTHROUGH_T),
    (OpIdentifier(ONNX_DOMAIN, "Unsqueeze", 11), _PASSTHROUGH_T),
    (OpIdentifier(ONNX_DOMAIN, "Unsqueeze", 13), _AXES_INPUT),
    # contrib ops
    (OpIdentifier(MS_DOMAIN, "NhwcMaxPool", 1), _PASSTHROUGH_T),
    (OpIdentifier(MS_DOMAIN, "QLinearConv", 1), _QLINEAR_CONV),
)


def get_required_op_identifiers() -> tuple[OpIdentifier, ...]:
    """Return identifiers of every op layout transformation may insert."""
    return tuple(op_id for op_id, _ in REQUIRED_OPS)


def build_required_ops_resolver() -> KernelTypeStrResolver:
    """Build a fresh resolver holding exactly the required ops."""
    return KernelTypeStrResolver(dict(REQUIRED_OPS))
