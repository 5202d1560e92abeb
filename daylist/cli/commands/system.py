"""
FILE: daylist/cli/commands/system.py
PURPOSE: System commands (version)
"""

# Import shared objects from main module
# These will be available after main.py imports this module
from ..main import app, console
from ... import __version__


@app.command()
def version():
    """Show daylist version."""
    console.print(f"daylist v{__version__}")
