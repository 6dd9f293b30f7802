"""
Package entry point.

Allows running with: python -m underless
"""

from underless.app.console import main

if __name__ == "__main__":
    main()
