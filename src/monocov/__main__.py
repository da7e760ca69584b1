"""Allow ``python -m monocov``."""

from monocov.cli import cli

if __name__ == "__main__":
    cli()
