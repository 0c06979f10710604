"""Kernel type-string resolver.

This module owns the OpIdentifier to TypeConstraintTable mapping used by
layout transformation in reduced builds. Entries are added through initial
registration or merge and are never removed.
"""

from __future__ import annotations

from typing import Iterator, Mapping, cast

from core.constants import DEFAULT_MERGE_POLICY, SUPPORTED_MERGE_POLICIES
from core.errors import KtsrLookupError, KtsrMergeConflictError, KtsrResolverError
from core.logging_config import get_logger
from core.types import ArgTypeAndIndex, MergePolicy, OpIdentifier
from resolver.type_constraint_table import TypeConstraintTable

_LOGGER = get_logger(__name__)


class KernelTypeStrResolver:
    """Maps operator identifiers to their type-constraint tables.

    A resolver is populated during a single initialization phase and then
    shared read-only. Mutating methods are not safe for concurrent use.
    """

    def __init__(
        self,
        entries: Mapping[OpIdentifier, TypeConstraintTable] | None = None,
    ) -> None:
        """Initialize resolver with optional initial entries.

        Args:
            entries: Initial identifier to table mapping.

        Raises:
            KtsrResolverError: If an entry has the wrong value types.
        """
        self._entries: dict[OpIdentifier, TypeConstraintTable] = {}
        for op_id, table in (entries or {}).items():
            self.register_op(op_id, table)

    def register_op(self, op_id: OpIdentifier, table: TypeConstraintTable) -> None:
        """Register one operator during initial population.

        Args:
            op_id: Operator identifier.
            table: Type-constraint table for the operator.

        Raises:
            KtsrResolverError: If the identifier already maps to a different table.
        """
        _validate_entry(op_id, table)
        existing_table = self._entries.get(op_id)
        if existing_table is None:
            self._entries[op_id] = table
            return
        if existing_table != table:
            raise KtsrResolverError(
                f"Op '{op_id}' is already registered with a different type-constraint table."
            )

    def merge(
        self,
        other: "KernelTypeStrResolver",
        policy: MergePolicy = cast(MergePolicy, DEFAULT_MERGE_POLICY),
    ) -> None:
        """Merge another resolver into this one, consuming it.

        Identifiers missing from this resolver are inserted. For identifiers
        present in both with differing tables, ``keep-self`` keeps this
        resolver's table, ``keep-other`` takes the other table, and ``fail``
        raises before anything is modified. On success ``other`` is left
        empty and must not be reused.

        Args:
            other: Resolver whose entries move into this one.
            policy: Conflict-resolution policy.

        Raises:
            KtsrMergeConflictError: If policy is ``fail`` and tables differ.
            KtsrResolverError: If policy is unknown.
        """
        if policy not in SUPPORTED_MERGE_POLICIES:
            raise KtsrResolverError(f"Unsupported merge policy: {policy!r}.")
        if other is self:
            return
        conflicts = [
            op_id
            for op_id, table in other._entries.items()
            if op_id in self._entries and self._entries[op_id] != table
        ]
        if conflicts and policy == "fail":
            conflict_names = ", ".join(str(op_id) for op_id in sorted(conflicts))
            raise KtsrMergeConflictError(
                f"Cannot merge resolvers: differing type-constraint tables for {conflict_names}. "
                "Use the keep-self or keep-other policy to pick a side."
            )
        added_count = 0
        for op_id, table in other._entries.items():
            if op_id not in self._entries:
                self._entries[op_id] = table
                added_count += 1
            elif policy == "keep-other":
                self._entries[op_id] = table
        other._entries = {}
        if conflicts:
            _LOGGER.warning(
                "resolver_merge_conflict",
                policy=policy,
                conflicts=[str(op_id) for op_id in sorted(conflicts)],
            )
        _LOGGER.debug(
            "resolver_merged",
            policy=policy,
            added=added_count,
            conflicts=len(conflicts),
            total=len(self._entries),
        )

    def get_type_constraints(self, op_id: OpIdentifier) -> TypeConstraintTable:
        """Return the type-constraint table for an exact identifier.

        Raises:
            KtsrLookupError: If the identifier is not registered.
        """
        table = self._entries.get(op_id)
        if table is None:
            raise KtsrLookupError(f"Failed to find op_id: {op_id}.")
        return table

    def resolve_kernel_type_str(
        self,
        op_id: OpIdentifier,
        kernel_type_str: str,
    ) -> tuple[ArgTypeAndIndex, ...]:
        """Return argument positions constrained by a kernel type string.

        Args:
            op_id: Operator identifier.
            kernel_type_str: Type parameter or formal parameter name.

        Returns:
            Ordered constrained argument positions.

        Raises:
            KtsrLookupError: If the op or the type string is unknown.
        """
        args = self.get_type_constraints(op_id).args_for(kernel_type_str)
        if args is None:
            raise KtsrLookupError(
                f"Failed to find args for kernel type string '{kernel_type_str}' of op {op_id}."
            )
        return args

    def find_op_identifier(
        self,
        domain: str,
        op_type: str,
        opset_version: int,
    ) -> OpIdentifier | None:
        """Return the nearest-prior registered identifier for an opset version.

        Args:
            domain: Operator domain.
            op_type: Operator type name.
            opset_version: Opset version in effect for the node.

        Returns:
            Identifier with the greatest ``since_version <= opset_version``,
            or None when no registered version applies.
        """
        best_match: OpIdentifier | None = None
        for op_id in self._entries:
            if op_id.domain != domain or op_id.op_type != op_type:
                continue
            if op_id.since_version > opset_version:
                continue
            if best_match is None or op_id.since_version > best_match.since_version:
                best_match = op_id
        return best_match

    def op_identifiers(self) -> tuple[OpIdentifier, ...]:
        return tuple(sorted(self._entries))

    def items(self) -> tuple[tuple[OpIdentifier, TypeConstraintTable], ...]:
        """Return entries sorted by identifier."""
        return tuple(sorted(self._entries.items(), key=lambda item: item[0]))

    def __contains__(self, op_id: object) -> bool:
        return op_id in self._entries

    def __iter__(self) -> Iterator[OpIdentifier]:
        return iter(self.op_identifiers())

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KernelTypeStrResolver):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"KernelTypeStrResolver(ops={len(self._entries)})"


def _validate_entry(op_id: object, table: object) -> None:
    if not isinstance(op_id, OpIdentifier):
        raise KtsrResolverError(
            f"Invalid resolver key: expected OpIdentifier, got {type(op_id).__name__}."
        )
    if not isinstance(table, TypeConstraintTable):
        raise KtsrResolverError(
            f"Invalid table for op '{op_id}': expected TypeConstraintTable, "
            f"got {type(table).__name__}."
        )
