"""Unit tests for shared identifier and argument types."""

from __future__ import annotations

import pytest

from core.errors import KtsrError, KtsrResolverError
from core.types import ArgType, OpIdentifier, input_arg, output_arg
from resolver.kernel_type_str_resolver import KernelTypeStrResolver
from resolver.type_constraint_table import TypeConstraintTable


def test_op_identifier_renders_colon_separated_text() -> None:
    """Identifiers should render as domain:op_type:since_version."""
    default_domain = OpIdentifier(domain="", op_type="Transpose", since_version=13)
    contrib_domain = OpIdentifier(domain="com.microsoft", op_type="QLinearConv", since_version=1)

    assert str(default_domain) == ":Transpose:13"
    assert str(contrib_domain) == "com.microsoft:QLinearConv:1"


def test_op_identifiers_order_by_domain_type_then_version() -> None:
    """Sorting should group versions of one op together in ascending order."""
    identifiers = [
        OpIdentifier("", "Squeeze", 13),
        OpIdentifier("com.microsoft", "NhwcMaxPool", 1),
        OpIdentifier("", "Squeeze", 1),
        OpIdentifier("", "Gather", 11),
    ]

    ordered = sorted(identifiers)

    assert [str(op_id) for op_id in ordered] == [
        ":Gather:11",
        ":Squeeze:1",
        ":Squeeze:13",
        "com.microsoft:NhwcMaxPool:1",
    ]


def test_arg_helpers_build_positions() -> None:
    """Argument helpers should tag positions with their kind."""
    first_input = input_arg(0)
    third_output = output_arg(2)

    assert first_input.arg_type is ArgType.INPUT and str(first_input) == "in0"
    assert third_output.arg_type is ArgType.OUTPUT and str(third_output) == "out2"


def test_op_identifier_rejects_negative_version() -> None:
    """since_version must be non-negative."""
    with pytest.raises(KtsrResolverError, match="expected non-negative integer, got -3"):
        OpIdentifier("", "Squeeze", -3)


@pytest.mark.parametrize("since_version", ["13", 13.0, True])
def test_op_identifier_rejects_non_int_version(since_version: object) -> None:
    """since_version must be a plain int so identifiers stay orderable."""
    with pytest.raises(KtsrResolverError, match="since_version"):
        OpIdentifier("", "Squeeze", since_version)  # type: ignore[arg-type]


def test_op_identifier_rejects_non_str_names() -> None:
    """domain and op_type must be strings."""
    with pytest.raises(KtsrResolverError, match="op_type: expected str, got bytes"):
        OpIdentifier("", b"Squeeze", 13)  # type: ignore[arg-type]


def test_invalid_identifier_never_reaches_resolver() -> None:
    """Resolvers should only ever hold sortable identifiers."""
    resolver = KernelTypeStrResolver({OpIdentifier("", "Squeeze", 2): TypeConstraintTable()})

    with pytest.raises(KtsrError):
        invalid_op_id = OpIdentifier("", "Squeeze", "1")  # type: ignore[arg-type]
        resolver.register_op(invalid_op_id, TypeConstraintTable())

    assert resolver.op_identifiers() == (OpIdentifier("", "Squeeze", 2),)
