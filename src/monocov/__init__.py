"""monocov — merge per-package coverage reports of a monorepo."""

__version__ = "0.1.0"
