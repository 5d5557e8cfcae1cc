from __future__ import annotations

import structlog


def configure_logging(log_format: str = "console") -> None:
    """Set a default structlog configuration for the API and CLI."""
    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ]
    )
