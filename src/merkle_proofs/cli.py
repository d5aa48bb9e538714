#!/usr/bin/env python3
"""
Merkle Proofs CLI

Command-line interface for building merkle trees and generating or
verifying inclusion proofs. Provides an interactive shell that keeps one
tree in memory, plus script-friendly one-shot commands.
"""

import json
import logging
import sys
from typing import List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import get_settings
from .errors import MerkleTreeError
from .service import TreeService
from .tree import MerkleTree
from .utils.hex_helpers import digest_to_hex, hex_to_digest, hexes_to_digests
from .visualize import print_proof, print_tree

# Configure rich console
console = Console()
logger = logging.getLogger(__name__)

SHELL_COMMANDS = [
    ("build", "build <hash-1> <hash-2> ... <hash-n>"),
    ("build-raw", "build-raw <raw-text-1> <raw-text-2> ... <raw-text-n>"),
    ("add", "add <32-bytes-hash>"),
    ("add-raw", "add-raw <raw-text>"),
    ("proof", "proof <index>"),
    ("verify", "verify <proof-1> <proof-2> ... <proof-n> <seed> <index>"),
    ("print", "print"),
    ("root", "root"),
    ("quit", "quit"),
]
USAGE = dict(SHELL_COMMANDS)


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else getattr(logging, get_settings().log_level, logging.WARNING)
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def _tree_from_args(items: List[str], raw: bool) -> MerkleTree:
    if raw:
        return MerkleTree.from_payloads(items)
    return MerkleTree(hexes_to_digests(items))


def _parse_index(value: str, out: Console) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        out.print(f"[red]Index must be an integer, got {value!r}[/red]")
        return None


def _print_usage(command: str, out: Console):
    out.print(f"[yellow]The amount of arguments is not the expected, usage: {USAGE[command]}[/yellow]")


def print_shell_help(out: Console):
    table = Table(title="Available commands")
    table.add_column("Command", style="cyan")
    table.add_column("Usage", style="green")
    for name, usage in SHELL_COMMANDS:
        table.add_row(name, usage)
    out.print(table)


def process_command(line: str, service: TreeService, out: Console) -> bool:
    """
    Run one shell command line against the service.

    Args:
        line: Raw input line
        service: Service holding the current tree
        out: Console to write results to

    Returns:
        False when the shell should exit, True otherwise
    """
    args = line.split()
    if not args:
        return False

    command, rest = args[0], args[1:]
    try:
        if command in ("--help", "help"):
            print_shell_help(out)
        elif command in ("quit", "exit"):
            return False
        elif command == "build":
            snapshot = service.build(rest)
            out.print(f"[green]Built tree with {snapshot.leaf_count} leaves[/green]")
        elif command == "build-raw":
            snapshot = service.build_raw(rest)
            out.print(f"[green]Built tree with {snapshot.leaf_count} leaves[/green]")
        elif command in ("add", "add-raw"):
            if len(rest) != 1:
                _print_usage(command, out)
            else:
                snapshot = service.add(rest[0]) if command == "add" else service.add_raw(rest[0])
                out.print(f"[green]Added leaf {snapshot.leaf_count - 1}[/green]")
        elif command == "proof":
            if len(rest) != 1:
                _print_usage(command, out)
                return True
            index = _parse_index(rest[0], out)
            if index is not None:
                out.print(" ".join(service.proof(index)), soft_wrap=True)
        elif command == "verify":
            if len(rest) < 2:
                _print_usage(command, out)
                return True
            index = _parse_index(rest[-1], out)
            if index is not None:
                if service.verify(rest[:-2], rest[-2], index):
                    out.print("[green]Proof has been verified[/green]")
                else:
                    out.print("[red]Proof has not been verified[/red]")
        elif command == "print":
            print_tree([[hex_to_digest(h) for h in level] for level in service.levels()], out)
        elif command == "root":
            out.print(service.root(), soft_wrap=True)
        else:
            out.print("Command not recognized, type --help to see the available commands")
    except MerkleTreeError as e:
        logger.debug(f"Shell command {command!r} failed: {e}")
        out.print(f"[red]{type(e).__name__}: {e}[/red]")
    return True


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, verbose: bool):
    """
    Merkle Proofs CLI - Build merkle trees and prove leaf membership.

    Leaves are SHA-256 digests written as 64 hex characters, or raw text
    hashed into leaves when --raw / build-raw is used.
    """
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
@click.pass_context
def shell(ctx):
    """Interactive mode keeping one tree in memory."""
    console.print(
        Panel(
            "Welcome to the Merkle Tree simulator.\n"
            "Type --help to list the available commands, a blank line to exit.",
            title="Interactive Mode",
            border_style="blue",
        )
    )

    service = TreeService()
    try:
        while True:
            try:
                line = console.input("[bold cyan]> [/bold cyan]")
            except EOFError:
                break
            if not process_command(line, service, console):
                break
    except KeyboardInterrupt:
        console.print("\n[yellow]Interactive mode cancelled[/yellow]")


@cli.command()
@click.argument("leaves", nargs=-1)
@click.option("--raw", is_flag=True, help="Treat arguments as raw text to hash into leaves")
def root(leaves, raw: bool):
    """Print the root of the tree built from LEAVES."""
    try:
        tree = _tree_from_args(list(leaves), raw)
        click.echo(digest_to_hex(tree.root))
    except MerkleTreeError as e:
        logger.error(f"Error computing root: {e}")
        raise click.ClickException(str(e))


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("index", type=int)
@click.argument("leaves", nargs=-1)
@click.option("--raw", is_flag=True, help="Treat arguments as raw text to hash into leaves")
@click.option(
    "--format",
    "format_output",
    type=click.Choice(["json", "table"]),
    default="json",
    help="Output format",
)
def proof(index: int, leaves, raw: bool, format_output: str):
    """
    Generate the inclusion proof for leaf INDEX of the tree built from LEAVES.

    INDEX: 0-based position of the leaf to prove
    """
    try:
        tree = _tree_from_args(list(leaves), raw)
        steps = tree.prove(index)
    except MerkleTreeError as e:
        logger.error(f"Error generating proof: {e}")
        raise click.ClickException(str(e))

    if format_output == "table":
        print_proof(steps, index, tree.root, console)
        return

    output = {
        "index": index,
        "leaf": digest_to_hex(tree.leaves[index]),
        "proof": [digest_to_hex(step) for step in steps],
        "root": digest_to_hex(tree.root),
    }
    click.echo(json.dumps(output, indent=2))


@cli.command()
@click.option("--leaf", required=True, help="Digest of the leaf being proven")
@click.option("--index", required=True, type=int, help="Index of the leaf")
@click.option("--root", "root_hex", required=True, help="Expected root digest")
@click.option("--proof", "proof_steps", multiple=True, help="Proof step, leaf-to-root (repeatable)")
def verify(leaf: str, index: int, root_hex: str, proof_steps):
    """Verify a proof against a known root without building a tree."""
    try:
        verified = MerkleTree.verify(
            hexes_to_digests(proof_steps), hex_to_digest(leaf), index, hex_to_digest(root_hex)
        )
    except MerkleTreeError as e:
        logger.error(f"Error verifying proof: {e}")
        raise click.ClickException(str(e))

    if verified:
        click.echo("Proof has been verified")
    else:
        click.echo("Proof has not been verified")
        sys.exit(1)


@cli.command(name="print")
@click.argument("leaves", nargs=-1)
@click.option("--raw", is_flag=True, help="Treat arguments as raw text to hash into leaves")
@click.option("--width", default=0, type=int, help="Truncate hashes to this many characters")
def print_command(leaves, raw: bool, width: int):
    """Print every level of the tree built from LEAVES."""
    try:
        tree = _tree_from_args(list(leaves), raw)
    except MerkleTreeError as e:
        logger.error(f"Error building tree: {e}")
        raise click.ClickException(str(e))
    print_tree(tree.levels, console, width)


@cli.command()
@click.option("--host", default=None, help="Host to bind to (defaults to MERKLE_API_HOST)")
@click.option("--port", default=None, type=int, help="Port to bind to (defaults to MERKLE_API_PORT)")
@click.option("--dev", is_flag=True, help="Enable development mode with auto-reload")
@click.pass_context
def serve(ctx, host: Optional[str], port: Optional[int], dev: bool):
    """Start the REST API server."""
    from .api.rest_api import run_server

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    try:
        console.print(
            Panel(
                f"Starting Merkle Proofs API Server\n\n"
                f"Server: http://{host}:{port}\n"
                f"Docs: http://{host}:{port}/docs\n"
                f"Health: http://{host}:{port}/health\n\n"
                f"Press Ctrl+C to stop",
                title="API Server",
                border_style="green",
            )
        )

        run_server(host=host, port=port, dev=dev)

    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped by user[/yellow]")
    except Exception as e:
        console.print(f"[red]Server error: {e}[/red]", style="bold")
        if ctx.obj.get("verbose"):
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    cli()
