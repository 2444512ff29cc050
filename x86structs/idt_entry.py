"""Interrupt Descriptor Table entries, their options, page fault codes and stack frames."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntFlag

from .addr import U64_MAX, VirtAddr
from .gdt import SegmentSelector
from .privilege import PrivilegeLevel

_U16_MAX = 0xFFFF
_U32_MAX = 0xFFFF_FFFF
_MINIMAL_OPTIONS = 0b1110_0000_0000
_PRESENT_BIT = 15
_INTERRUPTS_ENABLED_BIT = 8
_DPL_SHIFT = 13
_DPL_MASK = 0b11 << _DPL_SHIFT
_IST_MASK = 0b111
_MAX_STACK_INDEX = 6
_ENTRY_FORMAT = "<HHHHII"


def _check_range(value: int, maximum: int, bits: int) -> int:
    value = int(value)
    if not 0 <= value <= maximum:
        raise OverflowError(f"{value:#x} does not fit in {bits} bits")
    return value


@dataclass
class EntryOptions:
    """The 16-bit options field of an IDT entry; setters return self for chaining."""

    value: int = _MINIMAL_OPTIONS

    def __post_init__(self) -> None:
        self.value = _check_range(self.value, _U16_MAX, 16)

    @classmethod
    def minimal(cls) -> EntryOptions:
        """Options with only the must-be-one bits set."""
        return cls(_MINIMAL_OPTIONS)

    def _set_bit(self, bit: int, on: bool) -> None:
        if on:
            self.value |= 1 << bit
        else:
            self.value &= ~(1 << bit)

    def set_present(self, present: bool) -> EntryOptions:
        """Set or clear the present bit."""
        self._set_bit(_PRESENT_BIT, bool(present))
        return self

    def disable_interrupts(self, disable: bool) -> EntryOptions:
        """Choose whether the CPU disables hardware interrupts when the handler runs."""
        self._set_bit(_INTERRUPTS_ENABLED_BIT, not disable)
        return self

    def set_privilege_level(self, dpl: PrivilegeLevel) -> EntryOptions:
        """Set the privilege level required to invoke the handler."""
        level = PrivilegeLevel.from_u16(int(dpl))
        self.value = (self.value & ~_DPL_MASK) | (int(level) << _DPL_SHIFT)
        return self

    def set_stack_index(self, index: int) -> EntryOptions:
        """Assign Interrupt Stack Table stack `index` (0 to 6) to the handler."""
        index = int(index)
        if not 0 <= index <= _MAX_STACK_INDEX:
            raise ValueError(f"stack index {index} must lie between 0 and {_MAX_STACK_INDEX}")
        # The hardware counts IST stacks from 1.
        self.value = (self.value & ~_IST_MASK) | (index + 1)
        return self


@dataclass
class Entry:
    """A 16-byte IDT gate descriptor."""

    pointer_low: int = 0
    gdt_selector: int = 0
    options: EntryOptions = field(default_factory=EntryOptions.minimal)
    pointer_middle: int = 0
    pointer_high: int = 0
    reserved: int = 0

    def __post_init__(self) -> None:
        self.pointer_low = _check_range(self.pointer_low, _U16_MAX, 16)
        self.gdt_selector = _check_range(self.gdt_selector, _U16_MAX, 16)
        self.pointer_middle = _check_range(self.pointer_middle, _U16_MAX, 16)
        self.pointer_high = _check_range(self.pointer_high, _U32_MAX, 32)
        self.reserved = _check_range(self.reserved, _U32_MAX, 32)

    @classmethod
    def missing(cls) -> Entry:
        """A non-present entry with the must-be-one option bits set."""
        return cls()

    def set_handler_addr(self, addr: int, selector: SegmentSelector) -> EntryOptions:
        """Point the entry at `addr` in code segment `selector` and mark it present."""
        if isinstance(addr, VirtAddr):
            addr = addr.as_u64()
        addr = _check_range(addr, U64_MAX, 64)
        if isinstance(selector, SegmentSelector):
            selector_value = selector.value
        else:
            selector_value = _check_range(selector, _U16_MAX, 16)

        self.pointer_low = addr & 0xFFFF
        self.pointer_middle = (addr >> 16) & 0xFFFF
        self.pointer_high = (addr >> 32) & _U32_MAX
        self.gdt_selector = selector_value
        self.options.set_present(True)
        return self.options

    def handler_addr(self) -> int:
        """The handler address assembled from the three pointer fields."""
        return self.pointer_low | (self.pointer_middle << 16) | (self.pointer_high << 32)

    def to_bytes(self) -> bytes:
        """The 16-byte in-memory layout of the entry."""
        return struct.pack(
            _ENTRY_FORMAT,
            self.pointer_low,
            self.gdt_selector,
            self.options.value,
            self.pointer_middle,
            self.pointer_high,
            self.reserved,
        )


class PageFaultErrorCode(IntFlag):
    """The error code pushed by the CPU on a page fault."""

    PROTECTION_VIOLATION = 1 << 0
    CAUSED_BY_WRITE = 1 << 1
    USER_MODE = 1 << 2
    MALFORMED_TABLE = 1 << 3
    INSTRUCTION_FETCH = 1 << 4


@dataclass
class InterruptStackFrameValue:
    """The stack frame pushed by the CPU on interrupt or exception entry."""

    instruction_pointer: VirtAddr
    code_segment: int
    cpu_flags: int
    stack_pointer: VirtAddr
    stack_segment: int

    def __repr__(self) -> str:
        return (
            "InterruptStackFrame { "
            f"instruction_pointer: {self.instruction_pointer!r}, "
            f"code_segment: {self.code_segment}, "
            f"cpu_flags: {self.cpu_flags:#x}, "
            f"stack_pointer: {self.stack_pointer!r}, "
            f"stack_segment: {self.stack_segment} }}"
        )