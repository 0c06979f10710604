"""Required-ops command wiring for the ktsr CLI."""

from __future__ import annotations

import argparse
from typing import Any

from core.errors import KtsrDependencyError
from layout.bootstrap import find_required_ops_drift, regenerate_required_ops_artifact
from layout.onnx_schema_check import check_required_ops_against_onnx
from layout.required_ops import get_required_op_identifiers
from ortformat.codec import FormatCodec


def add_required_ops_command(subparsers: Any) -> None:
    """Register required-ops subcommand."""
    subparsers.add_parser(
        "required-ops",
        help="List ops layout transformation may insert",
    )


def add_regenerate_required_ops_command(subparsers: Any) -> None:
    """Register regenerate-required-ops subcommand."""
    parser = subparsers.add_parser(
        "regenerate-required-ops",
        help="Re-encode the embedded required-ops artifact",
    )
    parser.add_argument(
        "--output",
        help="Destination file, defaults to the packaged artifact",
    )


def add_verify_required_ops_command(subparsers: Any) -> None:
    """Register verify-required-ops subcommand."""
    parser = subparsers.add_parser(
        "verify-required-ops",
        help="Check the embedded artifact against the authoritative op list",
    )
    parser.add_argument(
        "--onnx",
        action="store_true",
        help="Also check default-domain ops against installed ONNX schemas",
    )


def run_required_ops_command(args: argparse.Namespace) -> int:
    """Print required op identifiers one per line."""
    for op_id in get_required_op_identifiers():
        print(op_id)
    return 0


def run_regenerate_required_ops_command(codec: FormatCodec, args: argparse.Namespace) -> int:
    """Write a freshly encoded artifact and print its path."""
    artifact_path = regenerate_required_ops_artifact(args.output, codec)
    print(f"artifact_path={artifact_path}")
    return 0


def run_verify_required_ops_command(args: argparse.Namespace) -> int:
    """Report artifact drift and optional schema problems."""
    problems = list(find_required_ops_drift())
    if args.onnx:
        try:
            problems.extend(check_required_ops_against_onnx())
        except KtsrDependencyError as error:
            print(f"verification_error={error}")
            return 1
    for problem in problems:
        print(f"[FAILED] {problem}")
    print(f"problems={len(problems)}")
    return 0 if not problems else 1
