"""Allow ``python -m tinyvcs``."""

from tinyvcs.cli.main import main

main()
