"""CLI entry point.

Allows running the CLI as a module: python -m sentinel.cli
"""

from sentinel.cli import app

if __name__ == "__main__":
    app()
