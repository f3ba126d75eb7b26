"""Allow ``python -m moretools``."""

from .app import main

raise SystemExit(main())
