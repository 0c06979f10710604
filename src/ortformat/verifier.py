"""Structural verification for untrusted FlatBuffers buffers.

The Python FlatBuffers runtime reads fields without bounds checks, and
negative slice offsets silently wrap around. This verifier walks a buffer
against a table descriptor before any accessor touches it and rejects
anything the accessors could misread: out-of-range or misaligned offsets,
malformed vtables, unterminated strings, oversized vectors, missing
required fields, and runaway nesting.

Limits mirror the C++ `flatbuffers::Verifier` defaults (max depth 64, max
1,000,000 tables, buffers under 2 GiB); keep them in step with that
verifier so both runtimes accept the same buffers.
"""

from __future__ import annotations

from typing import NoReturn

from flatbuffers import encode, packer, util
from flatbuffers import number_types as N

from core.constants import (
    VERIFIER_MAX_BUFFER_SIZE,
    VERIFIER_MAX_DEPTH,
    VERIFIER_MAX_TABLES,
)
from core.errors import KtsrVerificationError
from ortformat.schema import FieldKind, FieldSpec, TableSpec

UOFFSET_WIDTH = N.UOffsetTFlags.bytewidth
SOFFSET_WIDTH = N.SOffsetTFlags.bytewidth
VOFFSET_WIDTH = N.VOffsetTFlags.bytewidth


def verify_buffer(buffer: bytes, root: TableSpec, file_identifier: bytes) -> None:
    """Verify identifier and structure of a finished buffer.

    Args:
        buffer: Candidate buffer bytes.
        root: Descriptor of the root table.
        file_identifier: Expected 4-byte identifier.

    Raises:
        KtsrVerificationError: If any check fails.
    """
    BufferVerifier(buffer).verify(root, file_identifier)


class BufferVerifier:
    """Bounds and consistency checker for one buffer."""

    def __init__(
        self,
        buffer: bytes,
        max_depth: int = VERIFIER_MAX_DEPTH,
        max_tables: int = VERIFIER_MAX_TABLES,
    ) -> None:
        self._buffer = buffer
        self._size = len(buffer)
        self._max_depth = max_depth
        self._max_tables = max_tables
        self._table_count = 0

    def verify(self, root: TableSpec, file_identifier: bytes) -> None:
        """Verify the buffer header and the full table tree under root."""
        if self._size < UOFFSET_WIDTH + encode.FILE_IDENTIFIER_LENGTH:
            self._fail(f"buffer of {self._size} bytes is too small to hold a root table")
        if self._size > VERIFIER_MAX_BUFFER_SIZE:
            self._fail(f"buffer of {self._size} bytes exceeds the format size limit")
        if self._size % UOFFSET_WIDTH != 0:
            self._fail(f"buffer length {self._size} is not a multiple of {UOFFSET_WIDTH}")
        if not util.BufferHasIdentifier(self._buffer, 0, file_identifier):
            identifier = bytes(util.GetBufferIdentifier(self._buffer, 0))
            self._fail(f"file identifier {identifier!r} does not match {file_identifier!r}")
        root_pos = self._follow_offset(0, "root table")
        self._verify_table(root_pos, root, depth=1)

    def _verify_table(self, table_pos: int, table_spec: TableSpec, depth: int) -> None:
        if depth > self._max_depth:
            self._fail(
                f"{table_spec.name} table at {table_pos} exceeds max depth {self._max_depth}"
            )
        self._table_count += 1
        if self._table_count > self._max_tables:
            self._fail(f"buffer holds more than {self._max_tables} tables")
        self._check_range(table_pos, SOFFSET_WIDTH, SOFFSET_WIDTH, f"{table_spec.name} table")
        vtable_pos = table_pos - encode.Get(packer.soffset, self._buffer, table_pos)
        self._check_range(vtable_pos, 2 * VOFFSET_WIDTH, VOFFSET_WIDTH, f"{table_spec.name} vtable")
        vtable_size = encode.Get(packer.voffset, self._buffer, vtable_pos)
        table_size = encode.Get(packer.voffset, self._buffer, vtable_pos + VOFFSET_WIDTH)
        if vtable_size < 2 * VOFFSET_WIDTH or vtable_size % VOFFSET_WIDTH != 0:
            self._fail(f"{table_spec.name} vtable at {vtable_pos} has invalid size {vtable_size}")
        self._check_range(vtable_pos, vtable_size, VOFFSET_WIDTH, f"{table_spec.name} vtable")
        if table_size < SOFFSET_WIDTH:
            self._fail(f"{table_spec.name} table at {table_pos} has invalid size {table_size}")
        self._check_range(table_pos, table_size, 1, f"{table_spec.name} table")
        for field in table_spec.fields:
            field_offset = 0
            if field.vtable_offset < vtable_size:
                field_offset = encode.Get(
                    packer.voffset, self._buffer, vtable_pos + field.vtable_offset
                )
            if field_offset == 0:
                if field.required:
                    self._fail(f"required field {table_spec.name}.{field.name} is missing")
                continue
            self._verify_field(table_pos, table_size, field_offset, table_spec, field, depth)

    def _verify_field(
        self,
        table_pos: int,
        table_size: int,
        field_offset: int,
        table_spec: TableSpec,
        field: FieldSpec,
        depth: int,
    ) -> None:
        label = f"{table_spec.name}.{field.name}"
        width = field.width if field.kind == FieldKind.SCALAR else UOFFSET_WIDTH
        if field_offset + width > table_size:
            self._fail(f"field {label} lies outside its table at {table_pos}")
        field_pos = table_pos + field_offset
        if field.kind == FieldKind.SCALAR:
            self._check_range(field_pos, width, width, label)
            return
        target_pos = self._follow_offset(field_pos, label)
        if field.kind == FieldKind.STRING:
            self._verify_string(target_pos, label)
            return
        if field.element is None:
            self._fail(f"field {label} has no element descriptor")
        self._verify_table_vector(target_pos, field.element, label, depth)

    def _verify_string(self, string_pos: int, label: str) -> None:
        self._check_range(string_pos, UOFFSET_WIDTH, UOFFSET_WIDTH, f"{label} string length")
        length = encode.Get(packer.uoffset, self._buffer, string_pos)
        data_pos = string_pos + UOFFSET_WIDTH
        self._check_range(data_pos, length + 1, 1, f"{label} string data")
        if self._buffer[data_pos + length] != 0:
            self._fail(f"{label} string at {string_pos} is not NUL terminated")

    def _verify_table_vector(
        self,
        vector_pos: int,
        element: TableSpec,
        label: str,
        depth: int,
    ) -> None:
        self._check_range(vector_pos, UOFFSET_WIDTH, UOFFSET_WIDTH, f"{label} vector length")
        length = encode.Get(packer.uoffset, self._buffer, vector_pos)
        elements_pos = vector_pos + UOFFSET_WIDTH
        if length > (self._size - elements_pos) // UOFFSET_WIDTH:
            self._fail(f"{label} vector at {vector_pos} claims {length} elements past buffer end")
        for element_index in range(length):
            element_pos = elements_pos + element_index * UOFFSET_WIDTH
            table_pos = self._follow_offset(element_pos, f"{label}[{element_index}]")
            self._verify_table(table_pos, element, depth + 1)

    def _follow_offset(self, offset_pos: int, label: str) -> int:
        self._check_range(offset_pos, UOFFSET_WIDTH, UOFFSET_WIDTH, f"{label} offset")
        offset = encode.Get(packer.uoffset, self._buffer, offset_pos)
        if offset == 0 or offset > VERIFIER_MAX_BUFFER_SIZE:
            self._fail(f"{label} offset at {offset_pos} has invalid value {offset}")
        target_pos = offset_pos + offset
        self._check_range(target_pos, 1, 1, label)
        return target_pos

    def _check_range(self, position: int, length: int, alignment: int, label: str) -> None:
        if position < 0 or length < 0 or position + length > self._size:
            self._fail(
                f"{label} at {position} (+{length} bytes) is outside the {self._size}-byte buffer"
            )
        if alignment > 1 and position % alignment != 0:
            self._fail(f"{label} at {position} is not {alignment}-byte aligned")

    def _fail(self, reason: str) -> NoReturn:
        raise KtsrVerificationError(f"Failed to verify KernelTypeStrResolver buffer: {reason}.")
