"""
c64prg - PRG Generator Command-Line Interface
=============================================

This module implements the command-line interface for generating and
inspecting Commodore PRG files.

Commands
--------
- **create**: Generate a PRG that shows a message and waits for a key
- **info**: Show the BASIC header and layout of a PRG file
- **machines**: List the built-in machine profiles

Usage Examples
--------------
Generate the default program:
    $ c64prg create

Custom message and output:
    $ c64prg create -m "READY PLAYER ONE" -o ready.prg

VIC-20 with a listing:
    $ c64prg create -M vic20 -o hello20.prg -l hello20.lst

Static BASIC PRINT program:
    $ c64prg create --print -m "HELLO" -o print.prg

Inspect a file:
    $ c64prg info hello.prg
"""

import logging
from pathlib import Path
from typing import Optional

import click

from c64prg import __version__
from c64prg.cli.errors import handle_cli_exception
from c64prg.config import GeneratorConfig, ProgramShape, parse_address
from c64prg.errors import ConfigurationError, OutputWriteError
from c64prg.generator import PrgGenerator
from c64prg.machines import MACHINES
from c64prg.prg import PrgFile

# Logger for this module
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# Address Parameter Type
# =============================================================================

class AddressParam(click.ParamType):
    """
    Click parameter type for 16-bit addresses.

    Accepts: $0801, 0x0801, 2049
    """
    name = "address"

    def convert(self, value: str, param: Optional[click.Parameter],
                ctx: Optional[click.Context]) -> int:
        """Convert string to an address."""
        if isinstance(value, int):
            return value
        try:
            return parse_address(value)
        except ConfigurationError as e:
            self.fail(str(e), param, ctx)


ADDRESS = AddressParam()


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.version_option(__version__, "--version", "-V", prog_name="c64prg")
def main() -> None:
    """
    PRG generator for Commodore 8-bit machines.

    Build autorun programs that print a message and wait for a key,
    and inspect existing PRG files.

    \b
    Commands:
      create    Generate a PRG file
      info      Show PRG file layout
      machines  List machine profiles

    \b
    Examples:
      c64prg create -m "HELLO, WORLD!" -o hello.prg
      c64prg info hello.prg
    """
    pass


# =============================================================================
# Create Command
# =============================================================================

@main.command("create")
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output PRG file (default: hello.prg)",
)
@click.option(
    "-m", "--message",
    default=None,
    help='Message text (default: "HELLO, WORLD!")',
)
@click.option(
    "-M", "--machine",
    type=click.Choice(sorted(MACHINES), case_sensitive=False),
    default=None,
    help="Target machine profile (default: c64)",
)
@click.option(
    "-a", "--load-address",
    type=ADDRESS,
    default=None,
    help="Load address override, e.g. $0801 (default: machine's BASIC start)",
)
@click.option(
    "-n", "--line-number",
    type=int,
    default=None,
    help="BASIC line number (default: 10)",
)
@click.option(
    "--no-space",
    is_flag=True,
    help="Omit the space after SYS/PRINT",
)
@click.option(
    "--print", "print_shape",
    is_flag=True,
    help="Generate a static BASIC PRINT program instead of machine code",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write a listing file",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
def cmd_create(
    output: Optional[Path],
    message: Optional[str],
    machine: Optional[str],
    load_address: Optional[int],
    line_number: Optional[int],
    no_space: bool,
    print_shape: bool,
    listing: Optional[Path],
    verbose: bool,
) -> None:
    """
    Generate a PRG file.

    Options not given on the command line fall back to the C64PRG_*
    environment variables, then to the defaults.

    \b
    Examples:
      c64prg create
      c64prg create -m "HI THERE" -o hi.prg
      c64prg create -M vic20 -a $1001
      c64prg create --print -m "HELLO"
    """
    setup_logging(verbose)
    try:
        config = GeneratorConfig.from_env()
        if output is not None:
            config.output = output
        if message is not None:
            config.message = message
        if machine is not None:
            config.machine = machine
        if load_address is not None:
            config.load_address = load_address
        if line_number is not None:
            config.line_number = line_number
        if no_space:
            config.space_after_token = False
        if print_shape:
            config.shape = ProgramShape.PRINT
        logger.debug(f"Configuration: {config}")

        generator = PrgGenerator.from_config(config)
        if verbose:
            click.echo(
                f"Target: {generator.machine.description}, "
                f"load address ${generator.load_address:04X}"
            )

        program = generator.generate(config.message, config.shape)
        bytes_written = program.write(config.output)

        if listing:
            try:
                listing.write_text(program.listing + "\n")
            except OSError as e:
                raise OutputWriteError(str(listing), e.strerror or str(e)) from e
            if verbose:
                click.echo(f"Wrote listing to {listing}")

        if verbose:
            if program.base_address is not None:
                click.echo(f"  SYS address:  {program.bootstrap.sys_address}")
                click.echo(f"  Machine code: {len(program.code)} bytes at ${program.base_address:04X}")
                for name, address in sorted(program.symbols.items(), key=lambda item: item[1]):
                    click.echo(f"    {name:<10} ${address:04X}")
            else:
                click.echo(f"  BASIC only:   {len(program.bootstrap)} bytes")

        click.echo(f"Created: {config.output} ({bytes_written} bytes)")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Generation")


# =============================================================================
# Info Command
# =============================================================================

@main.command("info")
@click.argument(
    "prg_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
def cmd_info(prg_file: Path, verbose: bool) -> None:
    """
    Show the layout of a BASIC-headed PRG file.

    \b
    Example:
      c64prg info hello.prg

    \b
    Output includes:
      - Load address
      - BASIC listing
      - SYS address and whether it points at the machine code
      - Machine code size
    """
    setup_logging(verbose)
    try:
        prg = PrgFile.from_file(prg_file)

        click.echo(f"PRG Information: {prg_file}")
        click.echo("=" * 40)
        click.echo(f"Load address: ${prg.load_address:04X} ({prg.load_address})")
        click.echo(f"File size:    {len(prg.data)} bytes")
        click.echo()
        click.echo("BASIC:")
        for line in prg.lines:
            click.echo(f"  ${line.address:04X}  {line.text()}")
        click.echo(f"  ({prg.basic_size} bytes)")
        click.echo()
        click.echo(f"Machine code: {len(prg.machine_code)} bytes at ${prg.machine_code_address:04X}")

        sys_address = prg.sys_address
        if sys_address is not None:
            if prg.sys_targets_machine_code():
                click.echo(f"SYS target:   {sys_address} (start of machine code)")
            else:
                click.echo(
                    f"SYS target:   {sys_address} "
                    f"(MISMATCH: machine code starts at {prg.machine_code_address})"
                )

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


# =============================================================================
# Machines Command
# =============================================================================

@main.command("machines")
def cmd_machines() -> None:
    """List the built-in machine profiles."""
    click.echo(f"{'Name':<10} {'Load':<6} {'Screen':<7} {'Clear':<6} Description")
    click.echo("-" * 60)
    for name, profile in sorted(MACHINES.items()):
        click.echo(
            f"{name:<10} ${profile.load_address:04X} "
            f"${profile.screen_address:04X}  "
            f"${profile.clear_screen_routine:04X} {profile.description}"
        )


if __name__ == "__main__":
    main()
