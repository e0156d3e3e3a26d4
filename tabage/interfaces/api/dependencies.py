"""
FastAPI dependency injection helpers.

ARCHITECTURE:
- Endpoints inject services, never the Database or the identity store directly
- The Application is looked up on request.app.state, so several apps can coexist (tests)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import HTTPException, Request

from tabage.host.memory_host import InMemoryHost

if TYPE_CHECKING:
    from tabage.app import Application
    from tabage.host.host_protocols import MessageBus
    from tabage.services.config_svc import ConfigService
    from tabage.services.lifecycle_svc import LifecycleService


def get_application(request: Request) -> Application:
    application = getattr(request.app.state, "application", None)
    if application is None:
        raise HTTPException(status_code=503, detail="Engine not available")
    return application


def get_lifecycle_service(request: Request) -> LifecycleService:
    """Get LifecycleService instance."""
    return get_application(request).get_service("lifecycle")  # type: ignore[no-any-return]


def get_config_service(request: Request) -> ConfigService:
    """Get ConfigService instance."""
    return get_application(request).get_service("config")  # type: ignore[no-any-return]


def get_message_bus(request: Request) -> MessageBus:
    return get_application(request).host  # type: ignore[no-any-return]


def get_sandbox_host(request: Request) -> InMemoryHost:
    host = get_application(request).host
    if not isinstance(host, InMemoryHost):
        raise HTTPException(status_code=404, detail="Sandbox endpoints need the in-memory host")
    return host
