"""Allow running as ``python -m grocersee``."""

from grocersee.cli import main

main()
