"""
Output rendering and formatting.
"""

import os
import sys
from typing import Any, Mapping, TextIO

from .snapshot import ALTERNATIVE, OUTDATED, UNKNOWN, UP_TO_DATE


# Environment options
USE_EMOJI = os.environ.get("JDK_AUDIT_EMOJI", "1") == "1"
ENABLE_LINKS = os.environ.get("JDK_AUDIT_LINKS", "1") == "1"
USE_COLOR = os.environ.get("JDK_AUDIT_COLOR", "1") == "1"

# ANSI color codes
GREEN = "\033[32m"
BOLD_GREEN = "\033[1;32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
RESET = "\033[0m"


def status_icon(status: str) -> str:
    """Get status icon for an audit entry.

    Args:
        status: Entry state (UP-TO-DATE, OUTDATED, ALTERNATIVE, UNKNOWN or '')

    Returns:
        Status icon string
    """
    if not USE_EMOJI:
        return {UP_TO_DATE: "✓", OUTDATED: "↑", ALTERNATIVE: "~", UNKNOWN: "?"}.get(status, "-")
    return {UP_TO_DATE: "✅", OUTDATED: "⬆", ALTERNATIVE: "🔀", UNKNOWN: "❓"}.get(status, "☕")


def colorize(text: str, color: str) -> str:
    """Apply color to text, or return it unchanged when colors are disabled."""
    if not USE_COLOR or not text:
        return text
    return f"{color}{text}{RESET}"


def osc8(url: str, text: str) -> str:
    """Create OSC8 hyperlink.

    Args:
        url: Link URL
        text: Display text

    Returns:
        Hyperlinked text or plain text if links disabled
    """
    if not ENABLE_LINKS or not url:
        return text
    return f"\033]8;;{url}\033\\{text}\033]8;;\033\\"


STATUS_COLORS = {
    UP_TO_DATE: (GREEN, GREEN),
    OUTDATED: (YELLOW, BOLD_GREEN),
    ALTERNATIVE: (YELLOW, BLUE),
}


def format_entry(entry: dict[str, Any]) -> str:
    """Format one audit entry as a table line."""
    status = entry.get("status", "")
    name = entry.get("name", "")
    if entry.get("fx_bundled"):
        name = f"{name} (FX)"
    version = entry.get("version", "")
    inst_color, latest_color = STATUS_COLORS.get(status, (BLUE, BLUE))

    markers = []
    if entry.get("in_use"):
        markers.append("JAVA_HOME")
    if entry.get("handled_by_version_manager"):
        markers.append("managed")
    if entry.get("feature", "none") != "none":
        markers.append(entry["feature"])

    parts = [status_icon(status), name, colorize(version, inst_color)]

    latest = entry.get("latest", "")
    if latest and status in (OUTDATED, ALTERNATIVE):
        offer = osc8(entry.get("latest_url", ""), colorize(latest, latest_color))
        if status == ALTERNATIVE:
            offer = f"{offer} ({entry.get('latest_distribution', '')})"
        parts.append(f"-> {offer}")

    line = "  ".join(parts)
    if markers:
        line = f"{line}  [{' '.join(markers)}]"
    return f"{line}  {entry.get('parent_folder_name', '')}".rstrip()


def render_table(entries: list[dict[str, Any]], out: TextIO | None = None) -> None:
    """Print one line per audit entry.

    Args:
        entries: Entries from snapshot.build_entries()
        out: Output stream (default: stdout)
    """
    out = out or sys.stdout
    if not entries:
        print("No Java distributions found", file=out)
        return
    for entry in entries:
        print(format_entry(entry), file=out)


def render_javafx(updates: Mapping[Any, Any], out: TextIO | None = None) -> None:
    """Print the JavaFX SDK check results (installed version -> SdkUpdate)."""
    out = out or sys.stdout
    for version in sorted(updates):
        update = updates[version]
        if update.has_update:
            offer = osc8(update.uri, colorize(str(update.version), BOLD_GREEN))
            print(f"{status_icon(OUTDATED)}  JavaFX SDK  {colorize(str(version), YELLOW)}  -> {offer}", file=out)
        else:
            print(f"{status_icon(UP_TO_DATE)}  JavaFX SDK  {colorize(str(version), GREEN)}", file=out)


def print_summary(entries: list[dict[str, Any]]) -> None:
    """Print summary line to stderr."""
    total = len(entries)
    outdated = sum(1 for e in entries if e.get("status") == OUTDATED)
    alternative = sum(1 for e in entries if e.get("status") == ALTERNATIVE)
    unknown = sum(1 for e in entries if e.get("unknown_build"))

    parts = [f"{total} distributions", f"{outdated} outdated"]
    if alternative > 0:
        parts.append(f"{alternative} with newer alternatives")
    parts.append(f"{unknown} unknown")
    print(f"\nSummary: {', '.join(parts)}", file=sys.stderr)
