"""Cross-check required ops against the ONNX schema registry.

This module confirms that every default-domain required op names a real
schema version and that its type-constraint table matches the one the
schema implies. Contrib-domain ops are not in the ONNX registry and are
skipped.
"""

from __future__ import annotations

from typing import Any

from core.constants import ONNX_DOMAIN
from core.errors import KtsrDependencyError
from core.types import ArgType, ArgTypeAndIndex, OpIdentifier
from layout.required_ops import REQUIRED_OPS
from resolver.type_constraint_table import TypeConstraintTable


def check_required_ops_against_onnx() -> tuple[str, ...]:
    """Validate default-domain required ops with the installed onnx package.

    Returns:
        Human-readable problems, empty when every op matches its schema.

    Raises:
        KtsrDependencyError: If onnx is not installed.
    """
    onnx_module = _import_onnx_optional()
    problems: list[str] = []
    for op_id, type_constraints in REQUIRED_OPS:
        if op_id.domain != ONNX_DOMAIN:
            continue
        schema = _lookup_schema(onnx_module, op_id)
        if schema is None:
            problems.append(f"no ONNX schema found for {op_id}")
            continue
        if int(schema.since_version) != op_id.since_version:
            problems.append(
                f"{op_id} is not a schema version; nearest prior is {schema.since_version}"
            )
            continue
        expected = derive_type_constraints(schema)
        if expected.as_dict() != type_constraints.as_dict():
            problems.append(
                f"table for {op_id} is '{type_constraints}', schema implies '{expected}'"
            )
    return tuple(problems)


def derive_type_constraints(schema: Any) -> TypeConstraintTable:
    """Derive a type-constraint table from an ONNX operator schema.

    Formal parameters typed by a type constraint are grouped under the
    constraint name; fixed-type parameters are keyed by their own name.
    """
    constraint_names = {constraint.type_param_str for constraint in schema.type_constraints}
    grouped: dict[str, list[ArgTypeAndIndex]] = {}
    for arg_type, formal_params in (
        (ArgType.INPUT, schema.inputs),
        (ArgType.OUTPUT, schema.outputs),
    ):
        for index, formal_param in enumerate(formal_params):
            type_str = formal_param.type_str
            key = type_str if type_str in constraint_names else formal_param.name
            grouped.setdefault(key, []).append(ArgTypeAndIndex(arg_type=arg_type, index=index))
    return TypeConstraintTable.from_mapping(grouped)


def _lookup_schema(onnx_module: Any, op_id: OpIdentifier) -> Any:
    defs = onnx_module.defs
    try:
        return defs.get_schema(op_id.op_type, op_id.since_version, op_id.domain)
    except defs.SchemaError:
        return None


def _import_onnx_optional() -> Any:
    """Import ONNX dependency used for schema cross-checks."""
    try:
        import onnx
    except ImportError as error:
        raise KtsrDependencyError(
            "Checking required ops against ONNX schemas requires onnx, but it is not installed. "
            "Install with pip install -e .[onnx] before using --onnx."
        ) from error
    return onnx
