"""Entry point for running prtrigger as a module.

Allows running the application with:
    python -m prtrigger
"""

from prtrigger.cli import app

if __name__ == "__main__":
    app()
