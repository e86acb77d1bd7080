"""Run the posreport CLI with ``python -m posreport``."""

from posreport.cli import app

if __name__ == "__main__":
    app()
