"""sysdiff - system level diff against packages and a shadow repository."""

__version__ = "0.1.0"
