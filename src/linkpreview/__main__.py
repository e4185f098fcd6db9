"""Entry point for ``python -m linkpreview``."""

from linkpreview.cli.typer_app import app

if __name__ == "__main__":
    app()
