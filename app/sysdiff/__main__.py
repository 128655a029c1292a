"""Allow running sysdiff with ``python -m sysdiff``."""

from sysdiff.cli.main import app

app()
