#!/usr/bin/env python3
"""
Convenience entry point for running salonslots directly.

Usage: python salonslots_cli.py [command] [options]
"""

from salonslots.cli.app import app

if __name__ == "__main__":
    app()
