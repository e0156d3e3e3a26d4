"""Command line interface (``tabage``)."""
