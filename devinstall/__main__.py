"""Allow ``python -m devinstall``."""

from devinstall.main import cli

cli()
