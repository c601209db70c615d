# prompt_builder/db/infra/cli_utils.py
"""
Output helpers for the management CLI.

Every message is a one-line summary, optionally followed by a "Next step"
block (a command to run) and a "Details" block shown with --verbose.
Failures go to stderr and are printed even with --quiet.
"""
from __future__ import annotations

import sys
import textwrap
from typing import Any, Iterable, List, Mapping, Optional, Sequence

BLOCK_INDENT = "  "


def _summary_line(summary: str) -> str:
    lines = (summary or "").strip().splitlines()
    return lines[0] if lines else ""


def _block(title: str, body: str) -> List[str]:
    return ["", f"{title}:", textwrap.indent(textwrap.dedent(body).strip(), BLOCK_INDENT)]


def print_user_message(
    summary: str,
    action: Optional[str] = None,
    details: Optional[str] = None,
    verbose: bool = False,
    quiet: bool = False,
    error: bool = False,
) -> None:
    """
    Print a summary line plus optional next-step and detail blocks.

    error=True writes to stderr and ignores `quiet`.
    """
    if quiet and not error:
        return

    lines = [_summary_line(summary)]
    if action:
        lines += _block("Next step", action)
    if verbose and details:
        lines += _block("Details", details)
    print("\n".join(lines), file=sys.stderr if error else sys.stdout)


def format_rows(rows: Iterable[Mapping[str, Any]], columns: Sequence[str]) -> str:
    """
    Render mappings as left-aligned columns, header first.
    """
    rows = list(rows)
    widths = {
        col: max([len(col)] + [len(str(row.get(col, ""))) for row in rows])
        for col in columns
    }
    lines = ["  ".join(col.ljust(widths[col]) for col in columns).rstrip()]
    for row in rows:
        lines.append(
            "  ".join(str(row.get(col, "")).ljust(widths[col]) for col in columns).rstrip()
        )
    return "\n".join(lines)
