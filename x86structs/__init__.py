"""Data models of x86_64 addresses, privilege levels, GDT descriptors and IDT entries."""

__version__ = "0.1.0"
__all__ = ["addr", "privilege", "gdt", "idt_entry"]