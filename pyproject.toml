[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "x86structs"
version = "0.1.0"
description = "Pure data models of x86_64 addresses, privilege levels, GDT descriptors and IDT entries"
requires-python = ">=3.10"
dependencies = []
keywords = ["x86_64", "gdt", "idt", "paging", "osdev", "kernel", "descriptor"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System Kernels",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["x86structs"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
