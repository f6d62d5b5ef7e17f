"""
Consolidated OrderBridge Exception Hierarchy

Every error raised inside OrderBridge derives from OrderBridgeException so that
API handlers, the supplier gateway and the submission pipeline can all translate
failures the same way.

Architecture:
- Base exception classes for common error types
- Supplier exceptions carrying a structured upstream status code
- Absorbed exceptions (line items, search, pipeline stages) that are reported
  as data rather than surfaced to the caller
"""

import logging
from typing import Any, Dict, Optional, List

logger = logging.getLogger(__name__)


# =============================================================================
# Base Exception Classes
# =============================================================================


class OrderBridgeException(Exception):
    """Base exception for all OrderBridge-related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {"error_code": self.error_code, "message": self.message, "details": self.details}


class ValidationError(OrderBridgeException):
    """Raised when input validation fails."""

    def __init__(
        self, message: str, field_errors: Optional[Dict[str, str]] = None, missing_fields: Optional[List[str]] = None
    ):
        super().__init__(message, error_code="VALIDATION_ERROR")
        self.field_errors = field_errors or {}
        self.missing_fields = missing_fields or []

        if field_errors or missing_fields:
            self.details.update({"field_errors": field_errors, "missing_fields": missing_fields})


class InvalidRequestError(ValidationError):
    """Raised when a request names an unknown supplier or action, or lacks required parameters."""

    def __init__(self, message: str, parameter: Optional[str] = None, value: Optional[Any] = None):
        super().__init__(message)
        self.error_code = "INVALID_REQUEST"
        self.parameter = parameter
        self.value = value

        if parameter:
            self.details.update({"parameter": parameter, "value": value})


class ConfigurationError(OrderBridgeException):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_field: Optional[str] = None, config_value: Optional[str] = None):
        super().__init__(message, error_code="CONFIGURATION_ERROR")
        self.config_field = config_field
        self.config_value = config_value

        if config_field or config_value:
            self.details.update({"config_field": config_field, "config_value": config_value})


class AuthenticationError(OrderBridgeException):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, error_code="AUTHENTICATION_ERROR")


class ConnectionError(OrderBridgeException):
    """Raised when connection to external service fails."""

    def __init__(self, message: str, service_name: Optional[str] = None, endpoint: Optional[str] = None):
        super().__init__(message, error_code="CONNECTION_ERROR")
        self.service_name = service_name
        self.endpoint = endpoint

        if service_name or endpoint:
            self.details.update({"service_name": service_name, "endpoint": endpoint})


# =============================================================================
# Supplier Exceptions
# =============================================================================


class SupplierError(OrderBridgeException):
    """Base exception for all supplier-related errors."""

    def __init__(self, message: str, supplier_name: Optional[str] = None, error_code: Optional[str] = None):
        super().__init__(message, error_code=error_code or "SUPPLIER_ERROR")
        self.supplier_name = supplier_name

        if supplier_name:
            self.details.update({"supplier_name": supplier_name})


class SupplierConfigurationError(ConfigurationError):
    """Raised when a supplier or environment has no usable credential configuration."""

    def __init__(
        self,
        message: str,
        supplier_name: Optional[str] = None,
        environment: Optional[str] = None,
        config_field: Optional[str] = None,
    ):
        super().__init__(message, config_field=config_field)
        self.supplier_name = supplier_name
        self.environment = environment

        if supplier_name or environment:
            self.details.update({"supplier_name": supplier_name, "environment": environment})


class SupplierAuthenticationError(AuthenticationError):
    """Raised when supplier login fails or yields no usable session."""

    def __init__(self, message: str, supplier_name: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.supplier_name = supplier_name
        self.status_code = status_code

        if supplier_name:
            self.details.update({"supplier_name": supplier_name})
        if status_code:
            self.details.update({"status_code": status_code})


class SupplierApiError(SupplierError):
    """Raised when a supplier answers a pricing or order call with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        supplier_message: str,
        supplier_name: Optional[str] = None,
        endpoint: Optional[str] = None,
    ):
        label = supplier_name or "Supplier"
        super().__init__(
            f"{label} API error ({status_code}): {supplier_message}",
            supplier_name=supplier_name,
            error_code="SUPPLIER_API_ERROR",
        )
        self.status_code = status_code
        self.supplier_message = supplier_message
        self.endpoint = endpoint
        self.details.update({"status_code": status_code, "supplier_message": supplier_message})


class SupplierConnectionError(ConnectionError):
    """Raised when connection to supplier API fails."""

    def __init__(self, message: str, supplier_name: Optional[str] = None, endpoint: Optional[str] = None):
        super().__init__(message, service_name=supplier_name, endpoint=endpoint)
        self.supplier_name = supplier_name


class SupplierNotFoundError(InvalidRequestError):
    """Raised when requested supplier is not one of the configured suppliers."""

    def __init__(self, message: str, supplier_name: Optional[str] = None):
        super().__init__(message, parameter="supplier", value=supplier_name)
        self.supplier_name = supplier_name


# =============================================================================
# Absorbed Exceptions
# =============================================================================


class LineItemError(OrderBridgeException):
    """Per-line pricing failure. Recorded on the line, never raised to the caller."""

    SKU_NOT_FOUND = "SKU not found"
    PRICE_UNAVAILABLE = "Price unavailable"

    def __init__(self, sku: str, reason: str):
        super().__init__(f"{sku}: {reason}", error_code="LINE_ITEM_ERROR")
        self.sku = sku
        self.reason = reason
        self.details.update({"sku": sku, "reason": reason})


class SearchDegradation(OrderBridgeException):
    """Failure inside the product search ladder, folded into a fallback result."""

    def __init__(self, message: str, supplier_name: Optional[str] = None, step: Optional[str] = None):
        super().__init__(message, error_code="SEARCH_DEGRADED")
        self.supplier_name = supplier_name
        self.step = step

        if supplier_name or step:
            self.details.update({"supplier_name": supplier_name, "step": step})


class PipelineStageError(OrderBridgeException):
    """Failure of one order submission stage. Logged with resume context, never rolled back."""

    def __init__(
        self,
        stage: str,
        message: str,
        order_id: Optional[str] = None,
        supplier_name: Optional[str] = None,
        deal_id: Optional[str] = None,
    ):
        super().__init__(f"Stage '{stage}' failed: {message}", error_code="PIPELINE_STAGE_ERROR")
        self.stage = stage
        self.order_id = order_id
        self.supplier_name = supplier_name
        self.deal_id = deal_id
        self.details.update({"stage": stage, "order_id": order_id, "supplier_name": supplier_name, "deal_id": deal_id})


class CRMError(OrderBridgeException):
    """Raised when the CRM collaborator rejects a read, write or upload."""

    def __init__(self, message: str, status_code: Optional[int] = None, operation: Optional[str] = None):
        super().__init__(message, error_code="CRM_ERROR")
        self.status_code = status_code
        self.operation = operation

        if status_code or operation:
            self.details.update({"status_code": status_code, "operation": operation})


# =============================================================================
# Exception Logging Helpers
# =============================================================================


def log_exception(exception: Exception, context: str = None, extra_info: Optional[Dict[str, Any]] = None):
    """
    Centralized exception logging with consistent format.

    Args:
        exception: The exception to log
        context: Additional context about where the exception occurred
        extra_info: Additional information to include in the log
    """
    if isinstance(exception, OrderBridgeException):
        log_data = {
            "error_code": exception.error_code,
            "error_message": exception.message,  # LogRecord reserves "message"
            "details": exception.details,
            "context": context,
        }

        if extra_info:
            log_data.update(extra_info)

        logger.error(f"OrderBridge Error: {exception.message}", extra=log_data)
    else:
        log_data = {
            "exception_type": type(exception).__name__,
            "error_message": str(exception),
            "context": context,
        }

        if extra_info:
            log_data.update(extra_info)

        logger.error(f"Unexpected Error: {str(exception)}", extra=log_data)


def get_http_status_code(exception: Exception) -> int:
    """
    Get appropriate HTTP status code for an exception.

    Supplier errors that carry an upstream status keep it, so callers see
    the supplier's own code rather than a generic one.
    """
    status_code = getattr(exception, "status_code", None)
    if isinstance(status_code, int) and 400 <= status_code <= 599:
        return status_code

    if isinstance(exception, ValidationError):
        return 400
    elif isinstance(exception, ConfigurationError):
        return 400
    elif isinstance(exception, AuthenticationError):
        return 500
    elif isinstance(exception, ConnectionError):
        return 503
    elif isinstance(exception, CRMError):
        return 502
    elif isinstance(exception, OrderBridgeException):
        return 400
    else:
        return 500
