"""
Zircon Configuration
====================

Compiler settings. Configuration can come from:
- Default values (defined here)
- Environment variables
- Command-line options (the CLI overrides individual fields)

Environment Variables
---------------------
- ZIRCON_CHUNK_SIZE: bytes requested per read from the input stream
- ZIRCON_MAX_ERRORS: diagnostics shown before the rest are summarised
- NO_COLOR: when set (to anything), disables coloured diagnostics
"""

from dataclasses import dataclass
import os

from zircon.reader import DEFAULT_CHUNK_SIZE


@dataclass
class CompilerConfig:
    """
    Configuration for a compilation run.

    Attributes:
        chunk_size: Bytes requested per read from the input (default: 5,000)
        max_errors: Diagnostics rendered by the CLI (default: 10)
        color: Colour diagnostics on a terminal (default: True)
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_errors: int = 10
    color: bool = True

    @classmethod
    def from_env(cls) -> "CompilerConfig":
        """
        Create CompilerConfig from environment variables.

        Invalid integer values are ignored and the default is kept.

        Returns:
            CompilerConfig with values from environment variables
        """
        config = cls()

        if chunk_size := os.environ.get("ZIRCON_CHUNK_SIZE"):
            try:
                value = int(chunk_size)
                if value > 0:
                    config.chunk_size = value
            except ValueError:
                pass  # Ignore invalid values

        if max_errors := os.environ.get("ZIRCON_MAX_ERRORS"):
            try:
                config.max_errors = int(max_errors)
            except ValueError:
                pass

        if "NO_COLOR" in os.environ:
            config.color = False

        return config
