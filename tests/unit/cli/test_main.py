"""Unit tests for the ktsr CLI."""

from __future__ import annotations

from pathlib import Path

import pytest

from cli.main import main
from core.types import OpIdentifier, input_arg, output_arg
from layout.required_ops import build_required_ops_resolver
from ortformat.buffer_io import read_resolver_file, write_resolver_file
from ortformat.codec import FormatCodec
from resolver.kernel_type_str_resolver import KernelTypeStrResolver
from resolver.type_constraint_table import TypeConstraintTable

_TRANSPOSE_13 = OpIdentifier("", "Transpose", 13)


def _write_resolver(path: Path, table: TypeConstraintTable) -> Path:
    resolver = KernelTypeStrResolver({_TRANSPOSE_13: table})
    return write_resolver_file(path, resolver, FormatCodec())


def test_inspect_lists_ops(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """inspect should print one line per op and a count."""
    table = TypeConstraintTable.from_pairs([("T", (input_arg(0), output_arg(0)))])
    resolver_path = _write_resolver(tmp_path / "model.ktsr", table)

    exit_code = main(["inspect", str(resolver_path)])

    output = capsys.readouterr().out
    assert exit_code == 0
    assert ":Transpose:13\tT=in0,out0" in output and "ops=1" in output


def test_inspect_reports_corrupt_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Undecodable files should print an error and exit non-zero."""
    resolver_path = tmp_path / "corrupt.ktsr"
    resolver_path.write_bytes(b"not a resolver buffer")

    exit_code = main(["inspect", str(resolver_path)])

    assert exit_code == 1 and capsys.readouterr().out.startswith("error=")


def test_merge_writes_combined_resolver(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """merge should keep base tables and write the result."""
    base_table = TypeConstraintTable.from_pairs([("T", (input_arg(0), output_arg(0)))])
    base_path = _write_resolver(tmp_path / "base.ktsr", base_table)
    other_path = write_resolver_file(
        tmp_path / "other.ktsr",
        build_required_ops_resolver(),
        FormatCodec(),
    )
    output_path = tmp_path / "merged.ktsr"

    exit_code = main(["merge", str(base_path), str(other_path), "--output", str(output_path)])

    merged = read_resolver_file(output_path, FormatCodec())
    assert exit_code == 0 and "ops=17" in capsys.readouterr().out
    assert merged.get_type_constraints(_TRANSPOSE_13) == base_table


def test_merge_fail_policy_reports_conflict(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """merge --policy fail should stop on differing tables."""
    base_path = _write_resolver(
        tmp_path / "base.ktsr",
        TypeConstraintTable.from_pairs([("T", (input_arg(0),))]),
    )
    other_path = _write_resolver(
        tmp_path / "other.ktsr",
        TypeConstraintTable.from_pairs([("T", (output_arg(0),))]),
    )
    output_path = tmp_path / "merged.ktsr"

    exit_code = main(
        [
            "merge",
            str(base_path),
            str(other_path),
            "--output",
            str(output_path),
            "--policy",
            "fail",
        ]
    )

    assert exit_code == 1 and "error=Cannot merge resolvers" in capsys.readouterr().out
    assert not output_path.exists()


def test_minimal_build_cannot_write_resolvers(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Commands that encode should fail in the minimal build."""
    table = TypeConstraintTable.from_pairs([("T", (input_arg(0), output_arg(0)))])
    resolver_path = _write_resolver(tmp_path / "model.ktsr", table)

    exit_code = main(
        [
            "--build-variant",
            "minimal",
            "bootstrap",
            str(resolver_path),
            "--output",
            str(tmp_path / "out.ktsr"),
        ]
    )

    assert exit_code == 1 and "minimal build" in capsys.readouterr().out


def test_bootstrap_adds_required_ops(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """bootstrap should write a resolver holding every required op."""
    resolver_path = write_resolver_file(
        tmp_path / "model.ktsr",
        KernelTypeStrResolver(),
        FormatCodec(),
    )
    output_path = tmp_path / "bootstrapped.ktsr"

    exit_code = main(["bootstrap", str(resolver_path), "--output", str(output_path)])

    assert exit_code == 0 and f"output_path={output_path}" in capsys.readouterr().out
    assert read_resolver_file(output_path, FormatCodec()) == build_required_ops_resolver()


def test_required_ops_prints_identifiers(capsys: pytest.CaptureFixture[str]) -> None:
    """required-ops should print one identifier per line."""
    exit_code = main(["required-ops"])

    lines = capsys.readouterr().out.splitlines()
    assert exit_code == 0 and len(lines) == 17 and "com.microsoft:QLinearConv:1" in lines


def test_verify_required_ops_passes_for_packaged_artifact(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """The packaged artifact should verify cleanly."""
    exit_code = main(["verify-required-ops"])

    assert exit_code == 0 and "problems=0" in capsys.readouterr().out


def test_regenerate_required_ops_writes_output(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """regenerate-required-ops should honor --output."""
    output_path = tmp_path / "required_ops.ktsr"

    exit_code = main(["regenerate-required-ops", "--output", str(output_path)])

    assert exit_code == 0 and f"artifact_path={output_path}" in capsys.readouterr().out
    assert output_path.exists()
