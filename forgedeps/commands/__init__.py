"""CLI subcommands for forgedeps."""
