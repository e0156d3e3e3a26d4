"""
Serve command: run the HTTP API over a sandbox in-memory host.

The sandbox host starts with no tabs; open and close them through the API
or drive it from a script. Entries and settings persist in the configured database.
"""

from __future__ import annotations

import argparse
import logging

import uvicorn

from tabage.app import Application
from tabage.helpers.logging_helper import configure_logging
from tabage.host.memory_host import InMemoryHost
from tabage.interfaces.api.api_app import create_api_app


def cmd_serve(args: argparse.Namespace) -> int:
    """Start uvicorn; blocks until interrupted."""
    configure_logging(logging.DEBUG if getattr(args, "verbose", False) else logging.INFO)

    application = Application(host=InMemoryHost())
    host = args.host or application.api_host
    port = args.port or application.api_port
    api = create_api_app(application, start_reason=args.reason)

    logging.info("[CLI] Serving sandbox engine on http://%s:%s", host, port)
    # log_config=None keeps the handlers configure_logging() installed
    uvicorn.run(api, host=host, port=port, log_config=None)
    return 0
