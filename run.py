#!/usr/bin/env python3
"""CLI entry point for docker-hipache.

Runs the synchronizer from a source checkout. Installed copies use the
``docker-hipache`` console script instead.
"""

from docker_hipache.main import main

if __name__ == "__main__":
    main()
