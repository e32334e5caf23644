"""Allow ``python -m cagebot``."""

from cagebot.cli import main


raise SystemExit(main())
