"""Entry point for 'python -m recordwatch' command.

This module allows the recordwatch CLI to be invoked using
'python -m recordwatch'.
"""

from recordwatch.cli import main

if __name__ == "__main__":
    main()
