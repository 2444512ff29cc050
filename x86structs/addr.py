"""Canonical virtual and valid physical 64-bit addresses, plus alignment helpers."""

from __future__ import annotations

from functools import total_ordering

U64_MAX = (1 << 64) - 1

_VIRT_SIGN_BIT = 47
_VIRT_LOW_MASK = (1 << 48) - 1
_VIRT_HIGH_ONES = 0xFFFF << 48
_PHYS_MAX_BITS = 52


def _check_u64(addr: int) -> int:
    addr = int(addr)
    if not 0 <= addr <= U64_MAX:
        raise OverflowError(f"{addr:#x} does not fit in 64 bits")
    return addr


def _check_align(align: int) -> int:
    align = int(align)
    if align <= 0 or align & (align - 1):
        raise ValueError("`align` must be a power of two")
    return align


def align_down(addr: int, align: int) -> int:
    """Return the greatest x with alignment `align` so that x <= addr."""
    align = _check_align(align)
    return addr & ~(align - 1)


def align_up(addr: int, align: int) -> int:
    """Return the smallest x with alignment `align` so that x >= addr."""
    align = _check_align(align)
    mask = align - 1
    if addr & mask == 0:
        return addr
    result = (addr | mask) + 1
    if result > U64_MAX:
        raise OverflowError(f"aligning {addr:#x} up to {align:#x} overflows 64 bits")
    return result


class VirtAddrNotValid(ValueError):
    """Bits 48 to 64 of a value are neither null nor a sign extension of bit 47."""

    def __init__(self, bits: int) -> None:
        super().__init__(
            "address passed to VirtAddr must not contain any data in bits 48 to 64"
            f" (bits 47..64 were {bits:#x})"
        )
        self.bits = bits


class PhysAddrNotValid(ValueError):
    """Some of bits 52 to 64 of a value are set."""

    def __init__(self, bits: int) -> None:
        super().__init__(
            "physical addresses must not have any bits in the range 52 to 64 set"
            f" (bits 52..64 were {bits:#x})"
        )
        self.bits = bits


@total_ordering
class VirtAddr:
    """A canonical 64-bit virtual memory address."""

    __slots__ = ("_addr",)

    def __init__(self, addr: int) -> None:
        addr = _check_u64(addr)
        high = addr >> _VIRT_SIGN_BIT
        if high in (0, 0x1FFFF):
            self._addr = addr
        elif high == 1:
            self._addr = addr | _VIRT_HIGH_ONES
        else:
            raise VirtAddrNotValid(high)

    @classmethod
    def new_unchecked(cls, addr: int) -> VirtAddr:
        """Sign-extend bit 47 over bits 48 to 64, discarding whatever they held."""
        addr = _check_u64(addr) & _VIRT_LOW_MASK
        if addr >> _VIRT_SIGN_BIT & 1:
            addr |= _VIRT_HIGH_ONES
        return cls(addr)

    @classmethod
    def zero(cls) -> VirtAddr:
        """The virtual address 0."""
        return cls(0)

    def as_u64(self) -> int:
        return self._addr

    def align_up(self, align: int) -> VirtAddr:
        return VirtAddr(align_up(self._addr, align))

    def align_down(self, align: int) -> VirtAddr:
        return VirtAddr(align_down(self._addr, align))

    def is_aligned(self, align: int) -> bool:
        return self.align_down(align) == self

    def page_offset(self) -> int:
        """The 12-bit offset within a 4 KiB page."""
        return self._addr & 0xFFF

    def p1_index(self) -> int:
        """The 9-bit level 1 page table index."""
        return (self._addr >> 12) & 0o777

    def p2_index(self) -> int:
        """The 9-bit level 2 page table index."""
        return (self._addr >> 21) & 0o777

    def p3_index(self) -> int:
        """The 9-bit level 3 page table index."""
        return (self._addr >> 30) & 0o777

    def p4_index(self) -> int:
        """The 9-bit level 4 page table index."""
        return (self._addr >> 39) & 0o777

    def __int__(self) -> int:
        return self._addr

    __index__ = __int__

    def __add__(self, other: object) -> VirtAddr:
        if isinstance(other, bool) or not isinstance(other, int):
            return NotImplemented
        return VirtAddr(_check_u64(self._addr + other))

    def __sub__(self, other: object):
        if isinstance(other, VirtAddr):
            diff = self._addr - other._addr
            if diff < 0:
                raise OverflowError("subtraction of virtual addresses underflows")
            return diff
        if isinstance(other, bool) or not isinstance(other, int):
            return NotImplemented
        diff = self._addr - other
        if diff < 0:
            raise OverflowError("virtual address subtraction underflows")
        return VirtAddr(_check_u64(diff))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VirtAddr):
            return NotImplemented
        return self._addr == other._addr

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, VirtAddr):
            return NotImplemented
        return self._addr < other._addr

    def __hash__(self) -> int:
        return hash((VirtAddr, self._addr))

    def __repr__(self) -> str:
        return f"VirtAddr({self._addr:#x})"


@total_ordering
class PhysAddr:
    """A 64-bit physical memory address whose bits 52 to 64 are zero."""

    __slots__ = ("_addr",)

    def __init__(self, addr: int) -> None:
        addr = _check_u64(addr)
        high = addr >> _PHYS_MAX_BITS
        if high:
            raise PhysAddrNotValid(high)
        self._addr = addr

    def as_u64(self) -> int:
        return self._addr

    def is_null(self) -> bool:
        return self._addr == 0

    def align_up(self, align: int) -> PhysAddr:
        return PhysAddr(align_up(self._addr, align))

    def align_down(self, align: int) -> PhysAddr:
        return PhysAddr(align_down(self._addr, align))

    def is_aligned(self, align: int) -> bool:
        return self.align_down(align) == self

    def __int__(self) -> int:
        return self._addr

    __index__ = __int__

    def __add__(self, other: object) -> PhysAddr:
        if isinstance(other, bool) or not isinstance(other, int):
            return NotImplemented
        return PhysAddr(_check_u64(self._addr + other))

    def __sub__(self, other: object):
        if isinstance(other, PhysAddr):
            diff = self._addr - other._addr
            if diff < 0:
                raise OverflowError("subtraction of physical addresses underflows")
            return diff
        if isinstance(other, bool) or not isinstance(other, int):
            return NotImplemented
        diff = self._addr - other
        if diff < 0:
            raise OverflowError("physical address subtraction underflows")
        return PhysAddr(diff)

    def __format__(self, spec: str) -> str:
        if not spec:
            return repr(self)
        return format(self._addr, spec)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PhysAddr):
            return NotImplemented
        return self._addr == other._addr

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, PhysAddr):
            return NotImplemented
        return self._addr < other._addr

    def __hash__(self) -> int:
        return hash((PhysAddr, self._addr))

    def __repr__(self) -> str:
        return f"PhysAddr({self._addr:#x})"