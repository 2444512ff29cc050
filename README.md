# x86structs

Plain-Python models of data structures an x86_64 kernel works with:
canonical virtual and valid physical addresses, privilege levels, segment
selectors, the Global Descriptor Table and its descriptors, and Interrupt
Descriptor Table entries. Everything is pure data: values are checked and
encoded to the byte layout the CPU expects, without touching hardware.

## Installation

    pip install x86structs

For running the test suite:

    pip install "x86structs[test]"
    pytest

## Addresses (`x86structs.addr`)

    from x86structs.addr import VirtAddr, PhysAddr, align_up, align_down

    addr = VirtAddr(0x0000_8000_0000_1234)   # sign-extended to canonical form
    print(repr(addr))                        # VirtAddr(0xffff800000001234)
    addr.p4_index(), addr.page_offset()      # (256, 564)
    addr.align_down(4096)                    # VirtAddr(0xffff800000001000)

    PhysAddr(0x1000) + 0x10                  # PhysAddr(0x1010)
    f"{PhysAddr(0x1000):x}"                  # '1000'
    align_up(1233, 2)                        # 1234
    align_down(1235, 2)                      # 1234

- `VirtAddr(value)` accepts values whose bits 47–63 are all zero, all one, or
  only bit 47 set (which is then sign-extended); anything else raises
  `VirtAddrNotValid`. `VirtAddr.new_unchecked` sign-extends bit 47 regardless
  of what bits 48–63 held.
- `PhysAddr(value)` raises `PhysAddrNotValid` if any of bits 52–63 is set.
- Both support `as_u64()`, `int()`, `align_up`, `align_down`, `is_aligned`,
  ordering and hashing. Adding or subtracting an integer gives a new address;
  subtracting two addresses of the same kind gives their distance as an int.
  Results that underflow or overflow 64 bits raise `OverflowError`.
- `align_up` / `align_down` raise `ValueError` when the alignment is not a
  power of two.

## Privilege levels (`x86structs.privilege`)

    from x86structs.privilege import PrivilegeLevel

    PrivilegeLevel.from_u16(3)               # PrivilegeLevel.RING3
    PrivilegeLevel.from_u16(4)               # ValueError

## Global Descriptor Table (`x86structs.gdt`)

    from x86structs.gdt import GlobalDescriptorTable, Descriptor, SegmentSelector
    from x86structs.privilege import PrivilegeLevel

    gdt = GlobalDescriptorTable()
    kernel_cs = gdt.add_entry(Descriptor.kernel_code_segment())
    user_ds = gdt.add_entry(Descriptor.user_data_segment())
    tss = gdt.add_entry(Descriptor.tss_segment(base=0xffff_8000_0010_0000, size=104))
    kernel_cs                                # SegmentSelector(index=1, rpl=RING0)
    gdt.entries()                            # the eight raw 64-bit slot values
    pointer = gdt.table_pointer(base=0x1000)
    pointer.to_bytes()                       # 10-byte operand for lgdt

    SegmentSelector.new(3, PrivilegeLevel.RING3).value   # 27

The table holds eight slots, the first being the null descriptor. A
`UserSegment` takes one slot and a `SystemSegment` (such as the TSS
descriptor) takes two; adding past the end raises `GdtFullError`.
`DescriptorFlags` holds the descriptor flag bits used to build the segments.

## IDT entries (`x86structs.idt_entry`)

    from x86structs.idt_entry import Entry, PageFaultErrorCode, InterruptStackFrameValue
    from x86structs.privilege import PrivilegeLevel

    entry = Entry.missing()                  # not present, must-be-one bits set
    options = entry.set_handler_addr(0xffff_8000_0020_0000, kernel_cs)
    options.disable_interrupts(False).set_privilege_level(PrivilegeLevel.RING3)
    options.set_stack_index(0)               # IST stacks 0 to 6
    entry.handler_addr()                     # 0xffff800000200000
    entry.to_bytes()                         # 16-byte gate descriptor

    PageFaultErrorCode(0b11)                 # PROTECTION_VIOLATION | CAUSED_BY_WRITE

`EntryOptions` setters return the options object so calls can be chained.
`InterruptStackFrameValue` holds the values the CPU pushes on interrupt entry
and prints the flags in hexadecimal.

## What this package does not do

It does not execute privileged instructions, read or write CPU registers, or
load tables into the processor; it only builds and encodes the data. It has
no flag sets for the control registers or RFLAGS, and no complete 256-vector
Interrupt Descriptor Table: individual `Entry` objects are provided, and
laying out a full table is left to the caller.