"""Allow ``python -m ccstats``."""

from ccstats.cli import app

app()
