"""FlatBuffers table layout for serialized resolvers.

The descriptors below mirror this schema and drive both the structural
verifier and the field accessors used by the codec::

    enum ArgType : int8 { INPUT = 0, OUTPUT = 1 }
    table ArgTypeAndIndex { arg_type: ArgType; index: uint32; }
    table KernelTypeStrArgsEntry {
      kernel_type_str: string (required);
      args: [ArgTypeAndIndex];
    }
    table OpIdKernelTypeStrArgsEntry {
      op_id: string (required);
      kernel_type_str_args: [KernelTypeStrArgsEntry];
    }
    table KernelTypeStrResolver { op_kernel_type_str_args: [OpIdKernelTypeStrArgsEntry]; }
    root_type KernelTypeStrResolver;
    file_identifier "ktsr";
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FieldKind(Enum):
    """Storage class of a table field."""

    SCALAR = "scalar"
    STRING = "string"
    TABLE_VECTOR = "table_vector"


@dataclass(frozen=True)
class FieldSpec:
    """One field of a FlatBuffers table.

    Attributes:
        name: Schema field name.
        slot: Zero-based field id in declaration order.
        kind: Storage class.
        width: Byte width for scalars, zero otherwise.
        element: Element table for table vectors.
        required: Whether the field must be present.
    """

    name: str
    slot: int
    kind: FieldKind
    width: int = 0
    element: "TableSpec | None" = None
    required: bool = False

    @property
    def vtable_offset(self) -> int:
        """Byte offset of this field's entry inside the vtable."""
        return field_vtable_offset(self.slot)


@dataclass(frozen=True)
class TableSpec:
    """Named FlatBuffers table with its fields."""

    name: str
    fields: tuple[FieldSpec, ...]


def field_vtable_offset(slot: int) -> int:
    """Return the vtable byte offset for a field slot, past the two size entries."""
    return 4 + 2 * slot


ARG_TYPE_SLOT = 0
ARG_INDEX_SLOT = 1
KERNEL_TYPE_STR_SLOT = 0
KERNEL_TYPE_STR_ARGS_SLOT = 1
OP_ID_SLOT = 0
OP_KERNEL_TYPE_STR_ARGS_SLOT = 1
RESOLVER_ENTRIES_SLOT = 0

ARG_TYPE_AND_INDEX = TableSpec(
    name="ArgTypeAndIndex",
    fields=(
        FieldSpec(name="arg_type", slot=ARG_TYPE_SLOT, kind=FieldKind.SCALAR, width=1),
        FieldSpec(name="index", slot=ARG_INDEX_SLOT, kind=FieldKind.SCALAR, width=4),
    ),
)

KERNEL_TYPE_STR_ARGS_ENTRY = TableSpec(
    name="KernelTypeStrArgsEntry",
    fields=(
        FieldSpec(
            name="kernel_type_str",
            slot=KERNEL_TYPE_STR_SLOT,
            kind=FieldKind.STRING,
            required=True,
        ),
        FieldSpec(
            name="args",
            slot=KERNEL_TYPE_STR_ARGS_SLOT,
            kind=FieldKind.TABLE_VECTOR,
            element=ARG_TYPE_AND_INDEX,
        ),
    ),
)

OP_ID_KERNEL_TYPE_STR_ARGS_ENTRY = TableSpec(
    name="OpIdKernelTypeStrArgsEntry",
    fields=(
        FieldSpec(name="op_id", slot=OP_ID_SLOT, kind=FieldKind.STRING, required=True),
        FieldSpec(
            name="kernel_type_str_args",
            slot=OP_KERNEL_TYPE_STR_ARGS_SLOT,
            kind=FieldKind.TABLE_VECTOR,
            element=KERNEL_TYPE_STR_ARGS_ENTRY,
        ),
    ),
)

KERNEL_TYPE_STR_RESOLVER = TableSpec(
    name="KernelTypeStrResolver",
    fields=(
        FieldSpec(
            name="op_kernel_type_str_args",
            slot=RESOLVER_ENTRIES_SLOT,
            kind=FieldKind.TABLE_VECTOR,
            element=OP_ID_KERNEL_TYPE_STR_ARGS_ENTRY,
        ),
    ),
)
