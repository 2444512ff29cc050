import pytest
from hypothesis import given
from hypothesis import strategies as st

from x86structs.addr import (
    PhysAddr,
    PhysAddrNotValid,
    VirtAddr,
    VirtAddrNotValid,
    align_down,
    align_up,
)

U64_MAX = 0xFFFFFFFFFFFFFFFF


def test_align_up_source_cases():
    assert align_up(0, 1) == 0
    assert align_up(1234, 1) == 1234
    assert align_up(0xFFFFFFFFFFFFFFFF, 1) == 0xFFFFFFFFFFFFFFFF
    assert align_up(0, 2) == 0
    assert align_up(1233, 2) == 1234
    assert align_up(0xFFFFFFFFFFFFFFFE, 2) == 0xFFFFFFFFFFFFFFFE
    assert align_up(0, 128) == 0
    assert align_up(0, 1) == 0
    assert align_up(0, 2) == 0
    assert align_up(0, 0x8000000000000000) == 0


@pytest.mark.parametrize("align", [0, 3, 6, 12, -4])
def test_align_rejects_non_power_of_two(align):
    with pytest.raises(ValueError):
        align_up(16, align)
    with pytest.raises(ValueError):
        align_down(16, align)


def test_align_up_overflow():
    with pytest.raises(OverflowError):
        align_up(U64_MAX, 2)


@given(st.integers(0, U64_MAX // 2), st.integers(0, 62))
def test_align_invariants(addr, shift):
    align = 1 << shift
    down = align_down(addr, align)
    up = align_up(addr, align)
    assert down <= addr <= up
    assert down % align == 0
    assert up % align == 0
    assert up - down in (0, align)


def test_virt_canonical_low_and_high():
    assert VirtAddr(0x1234).as_u64() == 0x1234
    assert VirtAddr(0xFFFF800000000000).as_u64() == 0xFFFF800000000000


def test_virt_sign_extends():
    assert VirtAddr(0x0000800000000000).as_u64() == 0xFFFF800000000000


def test_virt_invalid():
    with pytest.raises(VirtAddrNotValid):
        VirtAddr(0x0001000000000000)


def test_virt_new_unchecked_overwrites_high_bits():
    assert VirtAddr.new_unchecked(0x0001000000001000).as_u64() == 0x1000
    assert VirtAddr.new_unchecked(0x1234800000000000) == VirtAddr(0xFFFF800000000000)


def test_virt_zero():
    assert VirtAddr.zero() == VirtAddr(0)
    assert int(VirtAddr.zero()) == 0


@given(
    st.integers(0, 511),
    st.integers(0, 511),
    st.integers(0, 511),
    st.integers(0, 511),
    st.integers(0, 4095),
)
def test_virt_page_indices_round_trip(p4, p3, p2, p1, offset):
    raw = (p4 << 39) | (p3 << 30) | (p2 << 21) | (p1 << 12) | offset
    addr = VirtAddr(raw)
    assert addr.p4_index() == p4
    assert addr.p3_index() == p3
    assert addr.p2_index() == p2
    assert addr.p1_index() == p1
    assert addr.page_offset() == offset


def test_virt_alignment():
    addr = VirtAddr(0x1234)
    assert addr.align_down(0x1000) == VirtAddr(0x1000)
    assert addr.align_up(0x1000) == VirtAddr(0x2000)
    assert not addr.is_aligned(0x1000)
    assert VirtAddr(0x2000).is_aligned(0x1000)


def test_virt_arithmetic():
    a = VirtAddr(0x1000)
    assert a + 0x10 == VirtAddr(0x1010)
    assert a - 0x10 == VirtAddr(0xFF0)
    assert (a + 0x20) - a == 0x20
    b = a
    b += 8
    assert b == VirtAddr(0x1008)
    assert a == VirtAddr(0x1000)


def test_virt_sub_underflow():
    with pytest.raises(OverflowError):
        VirtAddr(0x10) - 0x20
    with pytest.raises(OverflowError):
        VirtAddr(0x10) - VirtAddr(0x20)


def test_virt_ordering_and_hash():
    assert VirtAddr(1) < VirtAddr(2)
    assert len({VirtAddr(5), VirtAddr(5), VirtAddr(6)}) == 2


def test_virt_repr():
    assert repr(VirtAddr(0x1000)) == "VirtAddr(0x1000)"
    assert repr(VirtAddr.zero()) == "VirtAddr(0x0)"


def test_phys_valid_and_invalid():
    assert PhysAddr(0x000FFFFFFFFFFFFF).as_u64() == 0x000FFFFFFFFFFFFF
    with pytest.raises(PhysAddrNotValid):
        PhysAddr(1 << 52)


def test_phys_is_null():
    assert PhysAddr(0).is_null()
    assert not PhysAddr(1).is_null()


def test_phys_alignment_and_arithmetic():
    p = PhysAddr(0x1234)
    assert p.align_down(0x1000) == PhysAddr(0x1000)
    assert p.align_up(0x1000) == PhysAddr(0x2000)
    assert PhysAddr(0x2000).is_aligned(0x1000)
    assert p + 4 == PhysAddr(0x1238)
    assert p - 4 == PhysAddr(0x1230)
    assert PhysAddr(0x2000) - PhysAddr(0x1000) == 0x1000
    with pytest.raises(OverflowError):
        PhysAddr(0) - 1
    with pytest.raises(PhysAddrNotValid):
        PhysAddr(0x000FFFFFFFFFFFFF) + 1


def test_phys_format():
    p = PhysAddr(0xAB)
    assert f"{p:x}" == "ab"
    assert f"{p:X}" == "AB"
    assert f"{p:b}" == bin(0xAB)[2:]
    assert f"{p:o}" == oct(0xAB)[2:]
    assert repr(p) == "PhysAddr(0xab)"


def test_phys_and_virt_not_equal():
    assert PhysAddr(0x10) != VirtAddr(0x10)