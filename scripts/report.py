"""
Markdown report for an ethos check run.
"""

from pathlib import Path
from typing import List

REPORT_TITLE = "## 🌲 Ethos Guard Report 🕵️\n\n"
FAILURE_BANNER = "❌ **Unauthorized external network calls DETECTED!**\n"
SUCCESS_BANNER = "✅ No unauthorized external calls detected. The client-side ethos is strong with this one! ✨\n"


def join_violations(violations: List[str]) -> str:
    return "".join(f"  - `{v}`\n" for v in violations)


def render_report(violations: List[str], screenshot_taken: bool) -> str:
    report = REPORT_TITLE
    if violations:
        report += FAILURE_BANNER
        report += join_violations(violations)
        if screenshot_taken:
            report += "\nA screenshot showing the page state when issues were detected (or at error) has been captured.\n"
        else:
            report += "\nScreenshot was not captured.\n"
        return report

    report += SUCCESS_BANNER
    if screenshot_taken:
        report += "\nA screenshot of the tool page has been captured.\n"
    else:
        report += "\nScreenshot was not captured, but no violations were found.\n"
    return report


def write_report(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
