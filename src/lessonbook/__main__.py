"""Allow running as ``python -m lessonbook``."""

from lessonbook.cli import main

main()
