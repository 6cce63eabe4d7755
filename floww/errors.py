"""Exception types raised by the floww package."""

from __future__ import annotations


class FlowwError(Exception):
    """Base class for floww errors."""


class SourceParseError(FlowwError, ValueError):
    """The musical event source could not be read or parsed."""


class PacketDecodeError(FlowwError, ValueError):
    """Bytes do not form a valid packet batch."""


class PacketEncodeError(FlowwError, RuntimeError):
    """A packet sequence could not be serialized.

    Packets are valid by construction, so this always points at a bug in the
    caller rather than at bad input.
    """
