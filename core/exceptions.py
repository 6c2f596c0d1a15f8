"""
Custom exceptions for the data integration pipeline with structured error context.

Every exception carries context information for debugging and monitoring.
Runtime errors (source, transformation, load, delivery) are caught at the
boundary of the component that raised them and turned into status fields or
typed results. Configuration errors propagate: they indicate a wiring bug.

Exception Hierarchy:
    IntegrationError (base)
    ├── SourceError
    │   ├── ConnectivityError
    │   └── FetchError
    │       ├── RateLimitError
    │       ├── AuthenticationError
    │       └── ResourceNotFoundError
    ├── TransformationError
    ├── LoadError
    ├── ConfigurationError
    │   └── UnknownJobError
    └── DeliveryError
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class IntegrationError(Exception):
    """
    Base exception for all data integration errors.
    
    Attributes:
        message: Human-readable error message
        context: Additional context information (source, job id, etc.)
        original_exception: The original exception that was caught (if any)
    """
    
    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)
        
        self.context["error_timestamp"] = self.timestamp.isoformat()
        
        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception
    
    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"
        
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"
        
        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"
        
        return base_msg


# ============================================================================
# Source Errors
# ============================================================================

class SourceError(IntegrationError):
    """Base exception for source adapter failures."""
    pass


class ConnectivityError(SourceError):
    """
    Raised when an adapter cannot reach its source.
    
    Context should include:
        - source_id: The adapter's source id
        - url: The URL that was probed
        - timeout: Timeout in seconds (for timeouts)
    """
    pass


class FetchError(SourceError):
    """
    Raised when the adapter is connected but the fetch call itself fails.
    
    Context should include:
        - source_id: The adapter's source id
        - url: The requested URL
        - status_code: HTTP status code (if applicable)
        - response_body: Response body (truncated)
    """
    pass


class RateLimitError(FetchError):
    """Rate limiting errors (HTTP 429)."""
    
    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        retry_after: Optional[int] = None
    ):
        super().__init__(message, context, original_exception)
        self.retry_after = retry_after  # Seconds to wait before retry
        if retry_after:
            self.context["retry_after"] = retry_after


class AuthenticationError(FetchError):
    """Authentication failures (HTTP 401, 403)."""
    pass


class ResourceNotFoundError(FetchError):
    """Resource not found errors (HTTP 404)."""
    pass


# ============================================================================
# Pipeline Errors
# ============================================================================

class TransformationError(IntegrationError):
    """
    Raised when a transformation step fails.
    
    Context should include:
        - job_id: ETL job id
        - step_index: Position of the failing step
        - step_type: Transformation kind
        - field_name: Field that could not be transformed (if applicable)
    """
    pass


class LoadError(IntegrationError):
    """
    Raised when the output loader fails.
    
    Context should include:
        - job_id: ETL job id
        - destination: database or file
        - destination_path: Output path (file destinations)
    """
    pass


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(IntegrationError):
    """Invalid static configuration. Never caught by runtime components."""
    pass


class UnknownJobError(ConfigurationError):
    """
    A schedule or job id does not resolve.
    
    Context should include:
        - schedule_id: Referencing schedule (if any)
        - job_type: Expected kind of the referenced job
        - job_id: The unresolved id
    """
    pass


# ============================================================================
# Notification Errors
# ============================================================================

class DeliveryError(IntegrationError):
    """
    Raised by channel deliverers; always caught and logged by the engine.
    
    Context should include:
        - notification_id: Notification being delivered
        - channel_id: Target channel
        - channel_type: in-app, email or mobile
    """
    pass
