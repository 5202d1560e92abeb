"""
FILE: daylist/cli/__init__.py
PURPOSE: Command line front end
EXPORTS:
  - app, main (from cli.main)
"""

from .main import app, main

__all__ = ["app", "main"]
