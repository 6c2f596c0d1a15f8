"""
Core utilities and configuration for the data integration service.

Modules:
    config: Application settings from environment variables / .env
    context: Builds the application object graph from static configuration
    events: Typed in-process publish/subscribe bus
    exceptions: Exception hierarchy for error handling
    logging: Logging configuration

Usage:
    from core.config import settings
    from core.context import build_context, load_integration_config
    from core.exceptions import ConfigurationError, FetchError
    from core.logging import setup_logging

Example:
    setup_logging()
    
    context = build_context(load_integration_config())
    await context.scheduler.run_now("schedule-1")
"""

__all__ = [
    "settings",
    "setup_logging",
    "EventBus",
    "AppContext",
    "build_context",
    "load_integration_config",
    # Exceptions
    "IntegrationError",
    "SourceError",
    "ConnectivityError",
    "FetchError",
    "RateLimitError",
    "AuthenticationError",
    "ResourceNotFoundError",
    "TransformationError",
    "LoadError",
    "ConfigurationError",
    "UnknownJobError",
    "DeliveryError",
]
