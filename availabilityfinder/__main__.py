"""
Entry point for ``python -m availabilityfinder``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
