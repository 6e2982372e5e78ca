"""Violation taxonomy for the live-edit pipeline.

Violations are raised inside the validation chain and caught at the pipeline entry
points, where they are turned into ``blocked`` notifications. None of them escape
to callers of the public entry points.
"""

from __future__ import annotations

from enum import StrEnum


class BlockReason(StrEnum):
    PARSE = "parse"
    SCHEMA = "schema"
    MIN = "min"
    MAX = "max"
    PLUGIN = "plugin"
    BEFORE_CHANGE = "beforeChange"
    LOCKED = "locked"


class MaskViolation(Exception):
    """Base class for every recoverable rejection of a candidate value."""

    default_reason: str = BlockReason.PLUGIN

    def __init__(
        self,
        attempted: float | None = None,
        reason: str | None = None,
        message: str | None = None,
    ):
        self.attempted = attempted
        self.reason = str(reason or self.default_reason)
        self.message = message
        super().__init__(message or f"Invalid value ({self.reason})")


class ParseRejected(MaskViolation):
    """Text does not reduce to a finite number."""

    default_reason = BlockReason.PARSE


class SchemaViolation(MaskViolation):
    """Allowed range, multiple-of or custom predicate failed."""

    default_reason = BlockReason.SCHEMA


class RangeViolation(MaskViolation):
    """Below the minimum or above the maximum (reason is ``min`` or ``max``)."""

    default_reason = BlockReason.MAX


class HookRejected(MaskViolation):
    """A registered plugin hook blocked the value."""

    default_reason = BlockReason.PLUGIN


class GateVetoed(MaskViolation):
    """The caller's ``before_change`` gate declined the value."""

    default_reason = BlockReason.BEFORE_CHANGE


class LockedSurface(MaskViolation):
    """Mutation attempted on a locked field."""

    default_reason = BlockReason.LOCKED
