"""Entry point for 'python -m identitycore' command."""

from identitycore.cli import main

if __name__ == "__main__":
    main()
