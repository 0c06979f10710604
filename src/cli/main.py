"""ktsr CLI entry points.

This module exposes resolver inspection, merge, and bootstrap commands.
It maps argparse commands onto codec and resolver calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from typing import Any, Sequence

from cli.required_ops_command import (
    add_regenerate_required_ops_command,
    add_required_ops_command,
    add_verify_required_ops_command,
    run_regenerate_required_ops_command,
    run_required_ops_command,
    run_verify_required_ops_command,
)
from core.config import KtsrConfig, parse_build_variant, parse_merge_policy
from core.constants import SUPPORTED_BUILD_VARIANTS, SUPPORTED_MERGE_POLICIES
from core.errors import KtsrError
from layout.bootstrap import ensure_required_ops_present
from ortformat.buffer_io import read_resolver_file, write_resolver_file
from ortformat.codec import FormatCodec


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="ktsr",
        description="Kernel type-string resolver tooling",
    )
    parser.add_argument(
        "--build-variant",
        choices=SUPPORTED_BUILD_VARIANTS,
        help="Override KTSR_BUILD_VARIANT for this command",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_inspect_command(subparsers)
    _add_merge_command(subparsers)
    _add_bootstrap_command(subparsers)
    add_required_ops_command(subparsers)
    add_regenerate_required_ops_command(subparsers)
    add_verify_required_ops_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the ktsr CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = _build_config(args.build_variant)
        return _dispatch(parser, config, args)
    except KtsrError as error:
        print(f"error={error}")
        return 1


def _dispatch(parser: argparse.ArgumentParser, config: KtsrConfig, args: argparse.Namespace) -> int:
    codec = FormatCodec.from_config(config)
    if args.command == "inspect":
        return _run_inspect_command(codec, args)
    if args.command == "merge":
        return _run_merge_command(codec, config, args)
    if args.command == "bootstrap":
        return _run_bootstrap_command(codec, args)
    if args.command == "required-ops":
        return run_required_ops_command(args)
    if args.command == "regenerate-required-ops":
        return run_regenerate_required_ops_command(codec, args)
    if args.command == "verify-required-ops":
        return run_verify_required_ops_command(args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_config(build_variant: str | None) -> KtsrConfig:
    """Build config with optional build-variant override.

    Args:
        build_variant: Optional override value.

    Returns:
        Validated config.
    """
    config = KtsrConfig.from_env()
    if build_variant:
        config = replace(config, build_variant=parse_build_variant(build_variant))
    return config


def _run_inspect_command(codec: FormatCodec, args: argparse.Namespace) -> int:
    """Handle inspect command.

    Args:
        codec: Resolver codec.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    resolver = read_resolver_file(args.path, codec)
    for op_id, type_constraints in resolver.items():
        print(f"{op_id}\t{type_constraints or '-'}")
    print(f"ops={len(resolver)}")
    return 0


def _run_merge_command(codec: FormatCodec, config: KtsrConfig, args: argparse.Namespace) -> int:
    """Handle merge command.

    Args:
        codec: Resolver codec.
        config: Runtime config providing the default policy.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    policy = parse_merge_policy(args.policy) if args.policy else config.merge_policy
    resolver = read_resolver_file(args.base, codec)
    resolver.merge(read_resolver_file(args.other, codec), policy=policy)
    output_path = write_resolver_file(args.output, resolver, codec)
    print(f"output_path={output_path}")
    print(f"ops={len(resolver)}")
    return 0


def _run_bootstrap_command(codec: FormatCodec, args: argparse.Namespace) -> int:
    """Handle bootstrap command.

    Args:
        codec: Resolver codec.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    resolver = read_resolver_file(args.path, codec)
    ensure_required_ops_present(resolver)
    output_path = write_resolver_file(args.output, resolver, codec)
    print(f"output_path={output_path}")
    print(f"ops={len(resolver)}")
    return 0


def _add_inspect_command(subparsers: Any) -> None:
    """Register inspect subcommand."""
    parser = subparsers.add_parser("inspect", help="Decode a resolver file and list its ops")
    parser.add_argument("path", help="Serialized resolver file")


def _add_merge_command(subparsers: Any) -> None:
    """Register merge subcommand."""
    parser = subparsers.add_parser("merge", help="Merge OTHER into BASE and write the result")
    parser.add_argument("base", help="Resolver whose entries take part first")
    parser.add_argument("other", help="Resolver merged into base")
    parser.add_argument("--output", required=True, help="Destination resolver file")
    parser.add_argument(
        "--policy",
        choices=SUPPORTED_MERGE_POLICIES,
        help="Conflict policy, defaults to KTSR_MERGE_POLICY",
    )


def _add_bootstrap_command(subparsers: Any) -> None:
    """Register bootstrap subcommand."""
    parser = subparsers.add_parser(
        "bootstrap",
        help="Add layout-transformation required ops to a resolver file",
    )
    parser.add_argument("path", help="Serialized resolver file")
    parser.add_argument("--output", required=True, help="Destination resolver file")
