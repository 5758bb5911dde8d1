"""
jfrnorm CLI Entry Point

This module allows running jfrnorm as:
    python -m jfrnorm [command] [options]
"""

from jfrnorm.cli import cli

if __name__ == "__main__":
    cli()
