"""Module entrypoint.

Allows:
    python -m loglyzer
"""

from __future__ import annotations

from loglyzer.cli import main

if __name__ == "__main__":
    main()
