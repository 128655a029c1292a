"""Bundled data files (theme, default ignore rules)."""
