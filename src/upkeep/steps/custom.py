"""User-defined shell commands from the configuration file."""

from __future__ import annotations

from typing import TYPE_CHECKING

from upkeep.terminal import print_separator, shell

if TYPE_CHECKING:
    from upkeep.execution_context import ExecutionContext


def run_custom_command(name: str, command: str, ctx: ExecutionContext) -> None:
    """Run ``command`` through the user's shell under a separator titled ``name``."""
    print_separator(name)
    ctx.run_type.execute([shell(), "-c", command])
