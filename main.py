#!/usr/bin/env python

"""
Mari - Main Entry Point

A menu-bar time tracker that asks every 20 minutes what you are working on
and adds the period to that task's total for the day.

Usage:
    python main.py

Requirements:
    - Python 3.10+
    - See pyproject.toml for dependencies
"""

import logging
import sys

from mari.ui import SystemTrayApp


def main():
    """Main entry point"""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = SystemTrayApp()
    return app.run()


if __name__ == "__main__":
    sys.exit(main())
