"""Entry point for python -m mmhub."""

from mmhub.cli import app

if __name__ == "__main__":
    app()
