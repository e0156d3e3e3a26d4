"""CLI command implementations. Each module exposes one ``cmd_*`` function."""
