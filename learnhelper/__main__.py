"""
Package entry point.

Allows running the application via:

    python -m learnhelper

This simply forwards execution to learnhelper.cli.main().
"""

from learnhelper.cli import main

if __name__ == "__main__":
    main()
