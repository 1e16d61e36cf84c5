"""
zasm - Zircon Assembler Command-Line Interface
==============================================

This module implements the command-line interface for the Zircon assembler.

Usage Examples
--------------
Basic assembly:
    $ zasm boot.zir

With output file:
    $ zasm boot.zir -o boot.bin

With a symbol table:
    $ zasm boot.zir -o boot.bin -s boot.sym

Verbose mode:
    $ zasm -v boot.zir
"""

from pathlib import Path
from typing import Optional
import logging
import sys

import click

from zircon import __version__
from zircon.assembler import Compiler
from zircon.cli.errors import ExitCode, handle_cli_exception
from zircon.config import CompilerConfig
from zircon.diagnostics import render_errors
from zircon.errors import CompileFailed


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output binary file (default: input.bin)",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "--max-errors",
    type=click.IntRange(min=1),
    default=None,
    help="Number of errors to show before summarising the rest "
         "(default: 10, or ZIRCON_MAX_ERRORS)",
)
@click.option(
    "--color/--no-color",
    default=None,
    help="Force coloured diagnostics on or off (default: on for terminals, "
         "off if NO_COLOR is set)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="zasm")
def main(
    input_file: Path,
    output: Optional[Path],
    symbols: Optional[Path],
    max_errors: Optional[int],
    color: Optional[bool],
    verbose: bool,
) -> None:
    """
    Assemble Zircon source into a flat binary image.

    INPUT_FILE is the source file to assemble.

    \b
    Examples:
        zasm boot.zir              # Outputs boot.bin
        zasm boot.zir -o rom.bin   # Specify output file
        zasm boot.zir -s boot.sym  # Also write the symbol table
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    config = CompilerConfig.from_env()
    if max_errors is not None:
        config.max_errors = max_errors
    if color is not None:
        config.color = color

    output_file = output if output is not None else input_file.with_suffix(".bin")
    compiler = Compiler(config)

    try:
        if verbose:
            click.echo(f"Assembling {input_file}...")

        try:
            compiler.compile_file(input_file)
        except CompileFailed as e:
            report = render_errors(
                compiler.text,
                compiler.line_starts,
                e.errors,
                max_errors=config.max_errors,
                color=config.color,
            )
            click.echo(report, err=True, color=color)
            click.echo(f"\n{e}", err=True)
            sys.exit(ExitCode.BUILD_ERROR)

        compiler.write_binary(output_file)
        if verbose:
            click.echo(f"Wrote {len(compiler.get_code())} bytes to {output_file}")

        if symbols:
            compiler.write_symbols(symbols)
            if verbose:
                click.echo(f"Wrote {len(compiler.get_symbols())} symbols to {symbols}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
