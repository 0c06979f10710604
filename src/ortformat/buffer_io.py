"""Resolver file persistence.

This module reads and writes serialized resolvers on disk with
consistent error reporting for CLI and build tooling.
"""

from __future__ import annotations

from pathlib import Path

from core.errors import KtsrFileError
from ortformat.codec import FormatCodec
from resolver.kernel_type_str_resolver import KernelTypeStrResolver


def read_resolver_file(path: str | Path, codec: FormatCodec) -> KernelTypeStrResolver:
    """Read and decode a resolver file.

    Args:
        path: Serialized resolver path.
        codec: Codec used for decoding.

    Returns:
        Decoded resolver.

    Raises:
        KtsrFileError: If the file cannot be read.
        KtsrVerificationError: If the file fails verification.
        KtsrDecodeError: If a record is invalid.
    """
    return codec.decode(read_buffer_file(path))


def write_resolver_file(
    path: str | Path,
    resolver: KernelTypeStrResolver,
    codec: FormatCodec,
) -> Path:
    """Encode a resolver and write it to disk.

    Args:
        path: Destination path; parent directories are created.
        resolver: Resolver to serialize.
        codec: Codec used for encoding.

    Returns:
        Resolved destination path.

    Raises:
        KtsrEncodeError: If encoding fails or is unavailable.
        KtsrFileError: If the file cannot be written.
    """
    return write_buffer_file(path, codec.encode(resolver))


def read_buffer_file(path: str | Path) -> bytes:
    resolved_path = Path(path).expanduser().resolve()
    try:
        return resolved_path.read_bytes()
    except OSError as error:
        raise KtsrFileError(
            f"Failed to read resolver buffer at {resolved_path}: {error}. "
            "Verify the path exists and is readable."
        ) from error


def write_buffer_file(path: str | Path, buffer: bytes) -> Path:
    resolved_path = Path(path).expanduser().resolve()
    try:
        resolved_path.parent.mkdir(parents=True, exist_ok=True)
        resolved_path.write_bytes(buffer)
    except OSError as error:
        raise KtsrFileError(
            f"Failed to write resolver buffer at {resolved_path}: {error}. "
            "Check directory permissions and retry."
        ) from error
    return resolved_path
