"""Unit tests for FlatBuffers table descriptors."""

from __future__ import annotations

from ortformat.schema import (
    ARG_TYPE_AND_INDEX,
    KERNEL_TYPE_STR_ARGS_ENTRY,
    KERNEL_TYPE_STR_RESOLVER,
    OP_ID_KERNEL_TYPE_STR_ARGS_ENTRY,
    field_vtable_offset,
)

_TABLES = (
    ARG_TYPE_AND_INDEX,
    KERNEL_TYPE_STR_ARGS_ENTRY,
    OP_ID_KERNEL_TYPE_STR_ARGS_ENTRY,
    KERNEL_TYPE_STR_RESOLVER,
)


def test_field_slots_are_contiguous_from_zero() -> None:
    """Object sizes taken from field counts should cover every slot."""
    slot_lists = [[field.slot for field in table.fields] for table in _TABLES]

    assert slot_lists == [list(range(len(table.fields))) for table in _TABLES]


def test_vtable_offsets_skip_vtable_header() -> None:
    """Field entries start after the vtable and object size entries."""
    offsets = [field.vtable_offset for field in OP_ID_KERNEL_TYPE_STR_ARGS_ENTRY.fields]

    assert offsets == [4, 6] and field_vtable_offset(0) == 4
