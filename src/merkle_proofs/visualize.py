"""
Merkle Tree Visualization Module

This module renders tree levels and proofs with rich, helping users see
which sibling hashes a proof is made of.
"""

from typing import List, Optional

from rich.console import Console
from rich.table import Table

from .utils.hex_helpers import digest_to_hex


def _short(hex_str: str, width: int) -> str:
    if width <= 0 or len(hex_str) <= width:
        return hex_str
    half = max(width // 2 - 1, 1)
    return f"{hex_str[:half]}...{hex_str[-half:]}"


def render_levels(levels: List[List[bytes]], width: int = 0) -> Table:
    """
    Build a table of the tree, root level first.

    Args:
        levels: Tree levels from leaves to root
        width: Truncate hashes longer than this many characters (0 keeps full hashes)

    Returns:
        A rich Table with one row per node
    """
    table = Table(title="Merkle Tree")
    table.add_column("Level", style="cyan", justify="right")
    table.add_column("Index", style="cyan", justify="right")
    table.add_column("Hash", style="green")

    top = len(levels) - 1
    for depth, level in enumerate(reversed(levels)):
        label = "root" if depth == 0 else str(top - depth)
        if depth == top and depth != 0:
            label = f"{label} (leaves)"
        for i, node in enumerate(level):
            table.add_row(label if i == 0 else "", str(i), _short(digest_to_hex(node), width))
        if depth != top:
            table.add_section()

    return table


def print_tree(levels: List[List[bytes]], console: Optional[Console] = None, width: int = 0):
    """Print all tree levels, or a notice when the tree is empty."""
    console = console or Console()
    if not levels:
        console.print("[yellow]Tree is empty[/yellow]")
        return
    console.print(render_levels(levels, width))


def print_proof(proof: List[bytes], index: int, root: Optional[bytes] = None,
                console: Optional[Console] = None):
    """
    Print a proof path step by step.

    Args:
        proof: Sibling hashes ordered leaf-to-root
        index: Index of the leaf the proof is for
        root: Root the proof resolves to, if known
        console: Console to print to
    """
    console = console or Console()
    console.print(f"[bold cyan]Proof for leaf {index}[/bold cyan] ({len(proof)} steps)")

    position = index
    for i, step in enumerate(proof):
        side = "right" if position % 2 == 0 else "left"
        console.print(f"  {i:2d}: {digest_to_hex(step)}  [dim]({side} sibling)[/dim]")
        position //= 2

    if root is not None:
        console.print(f"[green]Root: {digest_to_hex(root)}[/green]")
