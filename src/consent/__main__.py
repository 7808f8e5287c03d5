"""Run the consent page with ``python -m src.consent``."""

from .main import run

run()
