"""Main entry point when executing apiwarden as a package.

This allows running the package using python -m apiwarden.
"""

from apiwarden.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
