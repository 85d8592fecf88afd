#!/usr/bin/env python3
"""
Setup script for Ethos Guard.
Installs the project with its dependencies and the Chromium build Playwright drives.
"""

import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def run_command(cmd, description):
    """Run a command and report status."""
    print(f"\n📦 {description}...")
    try:
        result = subprocess.run(cmd, check=True, capture_output=True, text=True)
        print(f"✅ {description} completed")
        if result.stdout:
            print(result.stdout)
        return True
    except subprocess.CalledProcessError as e:
        print(f"❌ {description} failed")
        if e.stderr:
            print(e.stderr)
        return False


def main():
    print("🚀 Setting up Ethos Guard...")

    if sys.version_info < (3, 9):
        print("❌ Python 3.9+ required")
        sys.exit(1)

    steps = [
        ([sys.executable, "-m", "pip", "install", "-e", str(PROJECT_ROOT)], "Installing Ethos Guard"),
        ([sys.executable, "-m", "playwright", "install", "chromium"], "Installing Chromium browser"),
    ]
    for cmd, description in steps:
        if not run_command(cmd, description):
            sys.exit(1)

    print("\n✅ Setup complete! You can now run:")
    print("   ethos-check <url> --outputSummaryFile summary.md --screenshotPath page.png")
    print("   ethos-scraper")


if __name__ == "__main__":
    main()
