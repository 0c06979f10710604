"""Required-ops bootstrap for layout transformation.

The packaged ``required_ops.ktsr`` artifact is a pre-encoded resolver for
the ops in ``layout.required_ops``. It is fixed at build time: a failure to
read or decode it means the build artifact is stale or corrupt, so it is
reported as ``KtsrBuildInvariantError`` rather than a normal decode error.
"""

from __future__ import annotations

from pathlib import Path

from core.constants import REQUIRED_OPS_ARTIFACT_FILE_NAME
from core.errors import KtsrBuildInvariantError, KtsrError
from core.logging_config import get_logger
from core.types import OpIdentifier
from layout.required_ops import build_required_ops_resolver, get_required_op_identifiers
from ortformat.buffer_io import read_buffer_file, write_buffer_file
from ortformat.codec import FormatCodec, decode_resolver
from resolver.kernel_type_str_resolver import KernelTypeStrResolver

_LOGGER = get_logger(__name__)


def required_ops_artifact_path() -> Path:
    """Return the packaged required-ops artifact path."""
    return Path(__file__).resolve().with_name(REQUIRED_OPS_ARTIFACT_FILE_NAME)


def load_required_ops_resolver() -> KernelTypeStrResolver:
    """Decode the embedded required-ops artifact into a new resolver.

    Raises:
        KtsrBuildInvariantError: If the artifact is missing or undecodable.
    """
    artifact_path = required_ops_artifact_path()
    try:
        return decode_resolver(read_buffer_file(artifact_path))
    except KtsrError as error:
        raise KtsrBuildInvariantError(
            f"Embedded required-ops artifact at {artifact_path} is unusable: {error} "
            "Regenerate it with 'ktsr regenerate-required-ops'."
        ) from error


def ensure_required_ops_present(resolver: KernelTypeStrResolver) -> None:
    """Merge the required ops into a resolver, keeping existing entries.

    Call once before layout transformation queries the resolver for the
    type constraints of nodes it inserts.

    Args:
        resolver: Working resolver, modified in place.

    Raises:
        KtsrBuildInvariantError: If the embedded artifact cannot be decoded.
    """
    required_ops = load_required_ops_resolver()
    before_count = len(resolver)
    resolver.merge(required_ops, policy="keep-self")
    _LOGGER.info(
        "required_ops_ensured",
        added=len(resolver) - before_count,
        total=len(resolver),
    )


def regenerate_required_ops_artifact(
    output_path: str | Path | None = None,
    codec: FormatCodec | None = None,
) -> Path:
    """Encode the authoritative required-ops list and write the artifact.

    Args:
        output_path: Destination, defaults to the packaged artifact path.
        codec: Codec used for encoding, defaults to the full build.

    Returns:
        Written artifact path.

    Raises:
        KtsrEncodeError: If encoding is unavailable or fails.
        KtsrFileError: If the artifact cannot be written.
    """
    active_codec = codec or FormatCodec("full")
    buffer = active_codec.encode(build_required_ops_resolver())
    written_path = write_buffer_file(output_path or required_ops_artifact_path(), buffer)
    _LOGGER.info(
        "required_ops_artifact_written",
        path=str(written_path),
        size_bytes=len(buffer),
    )
    return written_path


def find_required_ops_drift() -> tuple[str, ...]:
    """Compare the embedded artifact with a fresh regeneration.

    Byte layout may legitimately differ between encoder versions, so the
    comparison is made on decoded contents.

    Returns:
        Human-readable differences, empty when the artifact is current.

    Raises:
        KtsrBuildInvariantError: If the embedded artifact cannot be decoded.
    """
    embedded = load_required_ops_resolver()
    regenerated = decode_resolver(FormatCodec("full").encode(build_required_ops_resolver()))
    problems: list[str] = []
    for op_id in regenerated.op_identifiers():
        if op_id not in embedded:
            problems.append(f"missing from artifact: {op_id}")
        elif embedded.get_type_constraints(op_id) != regenerated.get_type_constraints(op_id):
            problems.append(
                f"table differs for {op_id}: artifact has "
                f"'{embedded.get_type_constraints(op_id)}', expected "
                f"'{regenerated.get_type_constraints(op_id)}'"
            )
    for op_id in embedded.op_identifiers():
        if op_id not in regenerated:
            problems.append(f"unexpected in artifact: {op_id}")
    return tuple(problems)


def missing_required_ops(resolver: KernelTypeStrResolver) -> tuple[OpIdentifier, ...]:
    """Return required identifiers absent from a resolver."""
    return tuple(op_id for op_id in get_required_op_identifiers() if op_id not in resolver)
