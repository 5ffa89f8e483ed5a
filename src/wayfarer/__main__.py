"""Entry point for 'python -m wayfarer' command."""

from wayfarer.cli import main

if __name__ == "__main__":
    main()
