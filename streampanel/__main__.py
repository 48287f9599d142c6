"""Allow ``python -m streampanel``."""

from streampanel.main import main

main()
