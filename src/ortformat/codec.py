"""Resolver encode/decode over the "ktsr" FlatBuffers format.

Decoding always verifies the file identifier and the buffer structure
before reading any field, then rebuilds the resolver in a local mapping
so callers never observe a partially populated resolver.
"""

from __future__ import annotations

from typing import Sequence, cast

import flatbuffers
from flatbuffers import encode, packer, table
from flatbuffers import number_types as N

from core.config import KtsrConfig
from core.constants import (
    DEFAULT_BUILD_VARIANT,
    DEFAULT_BUILDER_SIZE,
    FILE_IDENTIFIER,
    OP_ID_SEPARATOR,
    SUPPORTED_BUILD_VARIANTS,
    UINT32_MAX,
)
from core.errors import (
    KtsrConfigError,
    KtsrDecodeError,
    KtsrEncodeError,
    KtsrResolverError,
)
from core.logging_config import get_logger
from core.types import ArgType, ArgTypeAndIndex, BuildVariant, OpIdentifier
from ortformat.schema import (
    ARG_INDEX_SLOT,
    ARG_TYPE_AND_INDEX,
    ARG_TYPE_SLOT,
    KERNEL_TYPE_STR_ARGS_ENTRY,
    KERNEL_TYPE_STR_ARGS_SLOT,
    KERNEL_TYPE_STR_RESOLVER,
    KERNEL_TYPE_STR_SLOT,
    OP_ID_KERNEL_TYPE_STR_ARGS_ENTRY,
    OP_ID_SLOT,
    OP_KERNEL_TYPE_STR_ARGS_SLOT,
    RESOLVER_ENTRIES_SLOT,
    field_vtable_offset,
)
from ortformat.verifier import verify_buffer
from resolver.kernel_type_str_resolver import KernelTypeStrResolver
from resolver.type_constraint_table import TypeConstraintTable

_LOGGER = get_logger(__name__)

RawArg = tuple[int, int]
RawTypeConstraint = tuple[str | bytes, Sequence[RawArg]]
RawEntry = tuple[str | bytes, Sequence[RawTypeConstraint]]


class FormatCodec:
    """Encodes and decodes resolvers for one build variant.

    The ``minimal`` variant is decode-only, mirroring reduced runtime
    builds that load pre-encoded resolvers but never produce them.
    """

    def __init__(
        self,
        build_variant: BuildVariant = cast(BuildVariant, DEFAULT_BUILD_VARIANT),
    ) -> None:
        if build_variant not in SUPPORTED_BUILD_VARIANTS:
            raise KtsrConfigError(f"Unsupported build variant: {build_variant!r}.")
        self._build_variant = build_variant

    @classmethod
    def from_config(cls, config: KtsrConfig) -> "FormatCodec":
        return cls(build_variant=config.build_variant)

    @property
    def build_variant(self) -> BuildVariant:
        return self._build_variant

    @property
    def supports_encode(self) -> bool:
        return self._build_variant == "full"

    def encode(self, resolver: KernelTypeStrResolver) -> bytes:
        """Serialize a resolver into a new tagged buffer.

        Args:
            resolver: Resolver to serialize.

        Returns:
            Freshly built buffer bytes.

        Raises:
            KtsrEncodeError: If encoding is unavailable in this build or an
                entry cannot be represented in the format.
        """
        if not self.supports_encode:
            raise KtsrEncodeError(
                "Encoding resolvers is not available in the minimal build. "
                "Set KTSR_BUILD_VARIANT=full to enable it."
            )
        raw_entries = [
            (format_op_id(op_id), _raw_type_constraints(op_id, type_constraints))
            for op_id, type_constraints in resolver.items()
        ]
        buffer = encode_raw_entries(raw_entries)
        _LOGGER.debug("resolver_encoded", ops=len(raw_entries), size_bytes=len(buffer))
        return buffer

    def decode(self, buffer: bytes | bytearray | memoryview) -> KernelTypeStrResolver:
        """Verify and decode a buffer into a new resolver.

        Args:
            buffer: Buffer produced by ``encode``.

        Returns:
            Decoded resolver.

        Raises:
            KtsrVerificationError: If identifier or structure checks fail.
            KtsrDecodeError: If a verified record is semantically invalid.
        """
        return decode_resolver(buffer)


def decode_resolver(buffer: bytes | bytearray | memoryview) -> KernelTypeStrResolver:
    """Verify and decode a buffer into a new resolver.

    Decoding is available in every build variant.
    """
    if not isinstance(buffer, (bytes, bytearray, memoryview)):
        raise KtsrDecodeError(
            f"Invalid resolver buffer: expected bytes-like object, got {type(buffer).__name__}."
        )
    data = bytes(buffer)
    verify_buffer(data, KERNEL_TYPE_STR_RESOLVER, FILE_IDENTIFIER)
    root = table.Table(data, encode.Get(packer.uoffset, data, 0))
    entries: dict[OpIdentifier, TypeConstraintTable] = {}
    for entry in _table_vector(root, RESOLVER_ENTRIES_SLOT):
        op_id = parse_op_id(_decode_text(_string_field(entry, OP_ID_SLOT), "op_id"))
        if op_id in entries:
            raise KtsrDecodeError(f"Duplicate op_id in resolver buffer: {op_id}.")
        entries[op_id] = _decode_type_constraints(entry, op_id)
    resolver = KernelTypeStrResolver(entries)
    _LOGGER.debug("resolver_decoded", ops=len(entries), size_bytes=len(data))
    return resolver


def encode_raw_entries(entries: Sequence[RawEntry]) -> bytes:
    """Build a tagged buffer from raw textual entries.

    Args:
        entries: ``(op_id, [(kernel_type_str, [(arg_type, index), ...]), ...])``
            tuples written in the given order.

    Returns:
        Finished buffer bytes.
    """
    builder = flatbuffers.Builder(DEFAULT_BUILDER_SIZE)
    entry_offsets = [_build_op_entry(builder, op_id, constraints) for op_id, constraints in entries]
    entries_vector = _build_offset_vector(builder, entry_offsets)
    builder.StartObject(len(KERNEL_TYPE_STR_RESOLVER.fields))
    builder.PrependUOffsetTRelativeSlot(RESOLVER_ENTRIES_SLOT, entries_vector, 0)
    root = builder.EndObject()
    builder.Finish(root, file_identifier=FILE_IDENTIFIER)
    return bytes(builder.Output())


def format_op_id(op_id: OpIdentifier) -> str:
    """Render an identifier as ``domain:op_type:since_version``.

    Raises:
        KtsrEncodeError: If the identifier cannot round-trip through text.
    """
    if OP_ID_SEPARATOR in op_id.domain or OP_ID_SEPARATOR in op_id.op_type:
        raise KtsrEncodeError(
            f"Cannot encode op {op_id!r}: domain and op_type must not contain '{OP_ID_SEPARATOR}'."
        )
    if not op_id.op_type:
        raise KtsrEncodeError(f"Cannot encode op {op_id!r}: op_type is empty.")
    return str(op_id)


def parse_op_id(text: str) -> OpIdentifier:
    """Parse ``domain:op_type:since_version`` text into an identifier.

    Raises:
        KtsrDecodeError: If the text is malformed.
    """
    parts = text.split(OP_ID_SEPARATOR)
    if len(parts) != 3:
        raise KtsrDecodeError(
            f"Malformed op_id '{text}': expected domain:op_type:since_version."
        )
    domain, op_type, version_text = parts
    if not op_type:
        raise KtsrDecodeError(f"Malformed op_id '{text}': op_type is empty.")
    if not version_text.isascii() or not version_text.isdigit():
        raise KtsrDecodeError(
            f"Malformed op_id '{text}': since_version '{version_text}' "
            "is not a non-negative integer."
        )
    return OpIdentifier(domain=domain, op_type=op_type, since_version=int(version_text))


def _raw_type_constraints(
    op_id: OpIdentifier,
    type_constraints: TypeConstraintTable,
) -> list[RawTypeConstraint]:
    raw_constraints: list[RawTypeConstraint] = []
    for name, args in type_constraints:
        for arg in args:
            if arg.index > UINT32_MAX:
                raise KtsrEncodeError(
                    f"Cannot encode op {op_id}: argument index {arg.index} of '{name}' "
                    "does not fit in uint32."
                )
        raw_constraints.append((name, [(int(arg.arg_type), arg.index) for arg in args]))
    return raw_constraints


def _build_op_entry(
    builder: flatbuffers.Builder,
    op_id: str | bytes,
    constraints: Sequence[RawTypeConstraint],
) -> int:
    op_id_offset = builder.CreateString(op_id)
    constraint_offsets = [
        _build_type_constraint(builder, name, args) for name, args in constraints
    ]
    constraints_vector = _build_offset_vector(builder, constraint_offsets)
    builder.StartObject(len(OP_ID_KERNEL_TYPE_STR_ARGS_ENTRY.fields))
    builder.PrependUOffsetTRelativeSlot(OP_KERNEL_TYPE_STR_ARGS_SLOT, constraints_vector, 0)
    builder.PrependUOffsetTRelativeSlot(OP_ID_SLOT, op_id_offset, 0)
    return builder.EndObject()


def _build_type_constraint(
    builder: flatbuffers.Builder,
    name: str | bytes,
    args: Sequence[RawArg],
) -> int:
    name_offset = builder.CreateString(name)
    arg_offsets = [_build_arg(builder, arg_type, index) for arg_type, index in args]
    args_vector = _build_offset_vector(builder, arg_offsets)
    builder.StartObject(len(KERNEL_TYPE_STR_ARGS_ENTRY.fields))
    builder.PrependUOffsetTRelativeSlot(KERNEL_TYPE_STR_ARGS_SLOT, args_vector, 0)
    builder.PrependUOffsetTRelativeSlot(KERNEL_TYPE_STR_SLOT, name_offset, 0)
    return builder.EndObject()


def _build_arg(builder: flatbuffers.Builder, arg_type: int, index: int) -> int:
    builder.StartObject(len(ARG_TYPE_AND_INDEX.fields))
    builder.PrependUint32Slot(ARG_INDEX_SLOT, index, 0)
    builder.PrependInt8Slot(ARG_TYPE_SLOT, arg_type, int(ArgType.INPUT))
    return builder.EndObject()


def _build_offset_vector(builder: flatbuffers.Builder, offsets: Sequence[int]) -> int:
    builder.StartVector(N.UOffsetTFlags.bytewidth, len(offsets), N.UOffsetTFlags.bytewidth)
    for offset in reversed(offsets):
        builder.PrependUOffsetTRelative(offset)
    return builder.EndVector()


def _decode_type_constraints(entry: table.Table, op_id: OpIdentifier) -> TypeConstraintTable:
    pairs: list[tuple[str, tuple[ArgTypeAndIndex, ...]]] = []
    seen_names: set[str] = set()
    for constraint in _table_vector(entry, OP_KERNEL_TYPE_STR_ARGS_SLOT):
        name = _decode_text(_string_field(constraint, KERNEL_TYPE_STR_SLOT), "kernel_type_str")
        if name in seen_names:
            raise KtsrDecodeError(f"Duplicate kernel type string '{name}' for op {op_id}.")
        seen_names.add(name)
        args = tuple(
            _decode_arg(arg, op_id, name)
            for arg in _table_vector(constraint, KERNEL_TYPE_STR_ARGS_SLOT)
        )
        pairs.append((name, args))
    try:
        return TypeConstraintTable.from_pairs(pairs)
    except KtsrResolverError as error:
        raise KtsrDecodeError(f"Invalid type-constraint table for op {op_id}: {error}") from error


def _decode_arg(arg: table.Table, op_id: OpIdentifier, name: str) -> ArgTypeAndIndex:
    raw_arg_type = _scalar_field(arg, ARG_TYPE_SLOT, N.Int8Flags, int(ArgType.INPUT))
    try:
        arg_type = ArgType(raw_arg_type)
    except ValueError as error:
        raise KtsrDecodeError(
            f"Unknown arg_type {raw_arg_type} for kernel type string '{name}' of op {op_id}."
        ) from error
    index = _scalar_field(arg, ARG_INDEX_SLOT, N.Uint32Flags, 0)
    return ArgTypeAndIndex(arg_type=arg_type, index=index)


def _field_offset(tab: table.Table, slot: int) -> int:
    return tab.Offset(field_vtable_offset(slot))


def _table_vector(tab: table.Table, slot: int) -> list[table.Table]:
    offset = _field_offset(tab, slot)
    if offset == 0:
        return []
    start = tab.Vector(offset)
    return [
        table.Table(tab.Bytes, tab.Indirect(start + index * N.UOffsetTFlags.bytewidth))
        for index in range(tab.VectorLen(offset))
    ]


def _string_field(tab: table.Table, slot: int) -> bytes:
    offset = _field_offset(tab, slot)
    return tab.String(offset + tab.Pos)


def _scalar_field(tab: table.Table, slot: int, flags: object, default: int) -> int:
    offset = _field_offset(tab, slot)
    if offset == 0:
        return default
    return int(tab.Get(flags, offset + tab.Pos))


def _decode_text(raw_value: bytes, field_name: str) -> str:
    try:
        return raw_value.decode("utf-8")
    except UnicodeDecodeError as error:
        raise KtsrDecodeError(f"Field {field_name} is not valid UTF-8: {raw_value!r}.") from error
