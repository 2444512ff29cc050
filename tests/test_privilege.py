import pytest

from x86structs.privilege import PrivilegeLevel


@pytest.mark.parametrize("value", [0, 1, 2, 3])
def test_from_u16_round_trip(value):
    level = PrivilegeLevel.from_u16(value)
    assert int(level) == value
    assert PrivilegeLevel.from_u16(int(level)) is level


def test_named_levels():
    assert PrivilegeLevel.from_u16(0) is PrivilegeLevel.RING0
    assert PrivilegeLevel.from_u16(3) is PrivilegeLevel.RING3


@pytest.mark.parametrize("value", [4, 5, 100, 65535])
def test_from_u16_invalid(value):
    with pytest.raises(ValueError, match=f"{value} is not a valid privilege level"):
        PrivilegeLevel.from_u16(value)


def test_ordering_follows_ring_number():
    levels = sorted((PrivilegeLevel.from_u16(v) for v in (2, 0, 3, 1)), reverse=True)
    assert levels == [
        PrivilegeLevel.RING3,
        PrivilegeLevel.RING2,
        PrivilegeLevel.RING1,
        PrivilegeLevel.RING0,
    ]