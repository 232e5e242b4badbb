from .core import SQLAMapping, SQLAResource  # noqa: F401
