"""Entry point for python -m lunabot."""

from lunabot.cli.commands import app

if __name__ == "__main__":
    app()
