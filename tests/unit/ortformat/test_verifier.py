"""Unit tests for buffer verification."""

from __future__ import annotations

import flatbuffers
import pytest
from flatbuffers import number_types as N

from core.constants import FILE_IDENTIFIER, VERIFIER_MAX_DEPTH, VERIFIER_MAX_TABLES
from core.errors import KtsrDecodeError, KtsrVerificationError
from core.types import OpIdentifier, input_arg, output_arg
from ortformat.codec import FormatCodec, decode_resolver
from ortformat.schema import KERNEL_TYPE_STR_RESOLVER, RESOLVER_ENTRIES_SLOT
from ortformat.verifier import BufferVerifier, verify_buffer
from resolver.kernel_type_str_resolver import KernelTypeStrResolver
from resolver.type_constraint_table import TypeConstraintTable


def _sample_buffer() -> bytes:
    resolver = KernelTypeStrResolver(
        {
            OpIdentifier("", "Squeeze", 13): TypeConstraintTable.from_pairs(
                [("T", (input_arg(0), output_arg(0))), ("axes", (input_arg(1),))]
            ),
            OpIdentifier("", "Squeeze", 1): TypeConstraintTable.from_pairs(
                [("T", (input_arg(0), output_arg(0)))]
            ),
        }
    )
    return FormatCodec().encode(resolver)


def _buffer_without_op_id() -> bytes:
    builder = flatbuffers.Builder(0)
    builder.StartObject(2)
    entry = builder.EndObject()
    builder.StartVector(N.UOffsetTFlags.bytewidth, 1, N.UOffsetTFlags.bytewidth)
    builder.PrependUOffsetTRelative(entry)
    entries = builder.EndVector()
    builder.StartObject(1)
    builder.PrependUOffsetTRelativeSlot(RESOLVER_ENTRIES_SLOT, entries, 0)
    root = builder.EndObject()
    builder.Finish(root, file_identifier=FILE_IDENTIFIER)
    return bytes(builder.Output())


def test_encoded_buffer_verifies() -> None:
    """Freshly encoded buffers should pass verification."""
    buffer = _sample_buffer()

    verify_buffer(buffer, KERNEL_TYPE_STR_RESOLVER, FILE_IDENTIFIER)

    assert buffer[4:8] == FILE_IDENTIFIER


def test_altered_file_identifier_fails() -> None:
    """Changing the identifier bytes should fail verification."""
    tampered = bytearray(_sample_buffer())
    tampered[4:8] = b"ortm"

    with pytest.raises(KtsrVerificationError, match="file identifier"):
        decode_resolver(bytes(tampered))


def test_every_truncation_fails() -> None:
    """No strict prefix of a valid buffer should decode."""
    buffer = _sample_buffer()

    for length in range(len(buffer)):
        with pytest.raises((KtsrVerificationError, KtsrDecodeError)):
            decode_resolver(buffer[:length])


def test_root_offset_past_end_fails() -> None:
    """A root offset beyond the buffer should fail."""
    tampered = bytearray(_sample_buffer())
    tampered[0:4] = (len(tampered) + 64).to_bytes(4, "little")

    with pytest.raises(KtsrVerificationError, match="outside"):
        decode_resolver(bytes(tampered))


def test_missing_required_op_id_fails() -> None:
    """Entries without an op_id should fail verification."""
    buffer = _buffer_without_op_id()

    with pytest.raises(KtsrVerificationError, match="required field .*op_id is missing"):
        decode_resolver(buffer)


def test_table_limit_is_enforced() -> None:
    """Buffers holding more tables than allowed should fail."""
    verifier = BufferVerifier(_sample_buffer(), max_tables=2)

    with pytest.raises(KtsrVerificationError, match="more than 2 tables"):
        verifier.verify(KERNEL_TYPE_STR_RESOLVER, FILE_IDENTIFIER)


def test_depth_limit_is_enforced() -> None:
    """Nesting deeper than allowed should fail."""
    verifier = BufferVerifier(_sample_buffer(), max_depth=2)

    with pytest.raises(KtsrVerificationError, match="exceeds max depth 2"):
        verifier.verify(KERNEL_TYPE_STR_RESOLVER, FILE_IDENTIFIER)


def test_default_limits_match_flatbuffers_verifier() -> None:
    """Default limits should accept what the C++ verifier accepts."""
    limits = (VERIFIER_MAX_DEPTH, VERIFIER_MAX_TABLES)

    assert limits == (64, 1_000_000)
