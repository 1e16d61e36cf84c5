"""
Zircon Command-Line Interface
=============================

This package provides the command-line tools for Zircon:

- **zasm**: Zircon assembler

Each tool is implemented as a Click-based CLI application.
"""

__all__ = ["zasm"]
