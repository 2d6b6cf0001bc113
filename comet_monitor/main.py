#!/usr/bin/env python3
"""
Comet Borrower Monitor
Entry point: python -m comet_monitor.main <command>
"""
from .cli import main

if __name__ == "__main__":
    main()
