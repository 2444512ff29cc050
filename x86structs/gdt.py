"""Global Descriptor Table, segment selectors and descriptor table pointers."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntFlag

from .addr import U64_MAX
from .privilege import PrivilegeLevel

_U16_MAX = 0xFFFF
_GDT_SIZE = 8
_ENTRY_SIZE = 8
_TSS_AVAILABLE_64 = 0b1001


def _check_u64(value: int) -> int:
    value = int(value)
    if not 0 <= value <= U64_MAX:
        raise OverflowError(f"{value:#x} does not fit in 64 bits")
    return value


def _check_u16(value: int) -> int:
    value = int(value)
    if not 0 <= value <= _U16_MAX:
        raise OverflowError(f"{value:#x} does not fit in 16 bits")
    return value


def _bits(value: int, start: int, end: int) -> int:
    return (value >> start) & ((1 << (end - start)) - 1)


def _with_bits(target: int, start: int, end: int, value: int) -> int:
    width = end - start
    if value >> width:
        raise OverflowError(f"{value:#x} does not fit in {width} bits")
    mask = ((1 << width) - 1) << start
    return (target & ~mask) | (value << start)


@dataclass(frozen=True)
class DescriptorTablePointer:
    """The operand of `lgdt`/`lidt`: the table's byte limit and base address."""

    limit: int
    base: int

    def __post_init__(self) -> None:
        _check_u16(self.limit)
        _check_u64(self.base)

    def to_bytes(self) -> bytes:
        """The packed 10-byte in-memory form: 16-bit limit followed by 64-bit base."""
        return struct.pack("<HQ", self.limit, self.base)


@dataclass(frozen=True)
class SegmentSelector:
    """An index into the GDT or LDT together with a requested privilege level."""

    value: int

    def __post_init__(self) -> None:
        _check_u16(self.value)

    @classmethod
    def new(cls, index: int, rpl: PrivilegeLevel) -> SegmentSelector:
        """Build a selector from a table index (not a byte offset) and an RPL."""
        index = int(index)
        if not 0 <= index <= _U16_MAX >> 3:
            raise OverflowError(f"selector index {index} does not fit in 13 bits")
        return cls(index << 3 | int(PrivilegeLevel(rpl)))

    def index(self) -> int:
        """The descriptor table index."""
        return self.value >> 3

    def rpl(self) -> PrivilegeLevel:
        """The requested privilege level."""
        return PrivilegeLevel.from_u16(_bits(self.value, 0, 2))

    def __repr__(self) -> str:
        return f"SegmentSelector(index={self.index()}, rpl={self.rpl().name})"


class DescriptorFlags(IntFlag):
    """Flags for a GDT descriptor; not all flags apply to all descriptor types."""

    WRITABLE = 1 << 41
    CONFORMING = 1 << 42
    EXECUTABLE = 1 << 43
    USER_SEGMENT = 1 << 44
    PRESENT = 1 << 47
    LONG_MODE = 1 << 53
    DPL_RING_3 = 3 << 45


class Descriptor:
    """A 64-bit mode segment descriptor; see `UserSegment` and `SystemSegment`."""

    __slots__ = ()

    @staticmethod
    def kernel_code_segment() -> UserSegment:
        """A long mode kernel code segment."""
        flags = (
            DescriptorFlags.USER_SEGMENT
            | DescriptorFlags.PRESENT
            | DescriptorFlags.EXECUTABLE
            | DescriptorFlags.LONG_MODE
        )
        return UserSegment(int(flags))

    @staticmethod
    def user_data_segment() -> UserSegment:
        """A long mode ring 3 data segment."""
        flags = (
            DescriptorFlags.USER_SEGMENT
            | DescriptorFlags.PRESENT
            | DescriptorFlags.WRITABLE
            | DescriptorFlags.DPL_RING_3
        )
        return UserSegment(int(flags))

    @staticmethod
    def user_code_segment() -> UserSegment:
        """A long mode ring 3 code segment."""
        flags = (
            DescriptorFlags.USER_SEGMENT
            | DescriptorFlags.PRESENT
            | DescriptorFlags.EXECUTABLE
            | DescriptorFlags.LONG_MODE
            | DescriptorFlags.DPL_RING_3
        )
        return UserSegment(int(flags))

    @staticmethod
    def tss_segment(base: int, size: int) -> SystemSegment:
        """An available 64-bit TSS descriptor for a TSS at `base` of `size` bytes."""
        base = _check_u64(base)
        size = int(size)
        if not 1 <= size <= _U16_MAX + 1:
            raise ValueError(f"TSS size {size} must lie between 1 and 65536 bytes")

        low = int(DescriptorFlags.PRESENT)
        low = _with_bits(low, 16, 40, _bits(base, 0, 24))
        low = _with_bits(low, 56, 64, _bits(base, 24, 32))
        low = _with_bits(low, 0, 16, size - 1)
        low = _with_bits(low, 40, 44, _TSS_AVAILABLE_64)

        high = _with_bits(0, 0, 32, _bits(base, 32, 64))
        return SystemSegment(low, high)


@dataclass(frozen=True)
class UserSegment(Descriptor):
    """A code or data segment descriptor occupying one GDT slot."""

    value: int

    def __post_init__(self) -> None:
        _check_u64(self.value)


@dataclass(frozen=True)
class SystemSegment(Descriptor):
    """A system segment descriptor (such as a TSS) occupying two GDT slots."""

    low: int
    high: int

    def __post_init__(self) -> None:
        _check_u64(self.low)
        _check_u64(self.high)


class GdtFullError(IndexError):
    """The GDT has no room left for a descriptor."""


class GlobalDescriptorTable:
    """A fixed eight-entry 64-bit GDT whose first slot is the null descriptor."""

    __slots__ = ("_table", "_next_free")

    def __init__(self) -> None:
        self._table = [0] * _GDT_SIZE
        self._next_free = 1

    def add_entry(self, entry: Descriptor) -> SegmentSelector:
        """Store `entry` and return a ring 0 selector for it."""
        if isinstance(entry, UserSegment):
            values = (entry.value,)
        elif isinstance(entry, SystemSegment):
            values = (entry.low, entry.high)
        else:
            raise TypeError(f"expected a Descriptor, got {type(entry).__name__}")

        if self._next_free + len(values) > _GDT_SIZE:
            raise GdtFullError("GDT full")

        index = self._next_free
        for offset, value in enumerate(values):
            self._table[index + offset] = value
        self._next_free += len(values)
        return SegmentSelector.new(index, PrivilegeLevel.RING0)

    def entries(self) -> tuple[int, ...]:
        """The raw 64-bit values of all eight slots."""
        return tuple(self._table)

    def table_pointer(self, base: int) -> DescriptorTablePointer:
        """The `lgdt` operand for this table placed at address `base`."""
        return DescriptorTablePointer(limit=_GDT_SIZE * _ENTRY_SIZE - 1, base=base)