"""CLI subcommands for sysdiff."""
