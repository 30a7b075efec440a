#!/usr/bin/env python3
"""Entry point for the Habla TUI."""

from habla.tui.app import main

if __name__ == "__main__":
    main()
