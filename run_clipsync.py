#!/usr/bin/env python3
"""
Entry point wrapper that can be run from the project root without installing.
"""

import sys
from pathlib import Path


def setup_and_run():
    """Make the src directory importable and run the CLI."""
    project_root = Path(__file__).parent
    sys.path.insert(0, str(project_root / "src"))

    from clipsync.main import main

    main()


if __name__ == "__main__":
    setup_and_run()
