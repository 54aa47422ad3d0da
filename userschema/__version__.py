# noqa: D100
__version__ = "1.0.0"
