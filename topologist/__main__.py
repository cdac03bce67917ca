#!/usr/bin/env python3
"""Entry point for running topologist as a module."""

from .cli.main import main

if __name__ == "__main__":
    main()
