"""
Entry point for ``python -m getsettime``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
