"""
Entry point for ``python -m lessonscheduler``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
