"""Unit tests for resolver file helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import KtsrFileError
from core.types import OpIdentifier, input_arg, output_arg
from ortformat.buffer_io import read_resolver_file, write_resolver_file
from ortformat.codec import FormatCodec
from resolver.kernel_type_str_resolver import KernelTypeStrResolver
from resolver.type_constraint_table import TypeConstraintTable


def test_write_then_read_resolver_file(tmp_path: Path) -> None:
    """Written resolver files should decode to the same resolver."""
    codec = FormatCodec()
    resolver = KernelTypeStrResolver(
        {
            OpIdentifier("", "Identity", 16): TypeConstraintTable.from_pairs(
                [("V", (input_arg(0), output_arg(0)))]
            )
        }
    )

    written_path = write_resolver_file(tmp_path / "nested" / "ops.ktsr", resolver, codec)

    assert written_path.exists() and read_resolver_file(written_path, codec) == resolver


def test_read_missing_file_raises_file_error(tmp_path: Path) -> None:
    """Missing files should fail with a file error."""
    with pytest.raises(KtsrFileError, match="Failed to read resolver buffer"):
        read_resolver_file(tmp_path / "missing.ktsr", FormatCodec())
