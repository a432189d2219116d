"""Error handling framework for the git configuration adapter."""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional


class ErrorCategory(Enum):
    """Categories of errors for structured error handling."""
    RESOLUTION = "resolution"
    GIT_SYNC = "git_sync"
    DOWNSTREAM = "downstream"
    SYSTEM = "system"


class ErrorCode(Enum):
    """Distinct, inspectable failure kinds."""
    ADAPTER_ERROR = "ADAPTER_ERROR"
    MALFORMED_INPUT = "MALFORMED_INPUT"
    INVALID_FIELD = "INVALID_FIELD"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    OCCUPIED_INVALID_PATH = "OCCUPIED_INVALID_PATH"
    CLONE_FAILED = "CLONE_FAILED"
    FETCH_FAILED = "FETCH_FAILED"
    WORKTREE_FAILED = "WORKTREE_FAILED"
    UNRESOLVABLE_REFERENCE = "UNRESOLVABLE_REFERENCE"
    PULL_FAILED = "PULL_FAILED"
    DOWNSTREAM_LOAD_FAILED = "DOWNSTREAM_LOAD_FAILED"


class GitAdapterError(Exception):
    """Base class for every error the adapter reports."""

    error_code: ErrorCode = ErrorCode.ADAPTER_ERROR
    category: ErrorCategory = ErrorCategory.SYSTEM

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ResolutionError(GitAdapterError):
    """The adapter input could not be turned into sync options."""
    category = ErrorCategory.RESOLUTION


class MalformedInputError(ResolutionError):
    error_code = ErrorCode.MALFORMED_INPUT


class InvalidFieldError(MalformedInputError):
    """A field decoded fine but holds an unusable value."""
    error_code = ErrorCode.INVALID_FIELD

    def __init__(self, field: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, cause)
        self.field = field


class MissingRequiredFieldError(ResolutionError):
    error_code = ErrorCode.MISSING_REQUIRED_FIELD

    def __init__(self, field: str):
        super().__init__(f"required field '{field}' is missing or empty")
        self.field = field


class SyncError(GitAdapterError):
    """Repository synchronization failed."""
    category = ErrorCategory.GIT_SYNC


class OccupiedInvalidPathError(SyncError):
    """The target path holds something that is not a usable repository.

    Needs operator intervention; never retried and never cleaned up
    automatically.
    """
    error_code = ErrorCode.OCCUPIED_INVALID_PATH


class CloneFailedError(SyncError):
    error_code = ErrorCode.CLONE_FAILED


class FetchFailedError(SyncError):
    error_code = ErrorCode.FETCH_FAILED


class WorktreeError(SyncError):
    """Reset or clean of the working tree failed."""
    error_code = ErrorCode.WORKTREE_FAILED


class UnresolvableReferenceError(SyncError):
    error_code = ErrorCode.UNRESOLVABLE_REFERENCE


class PullFailedError(SyncError):
    error_code = ErrorCode.PULL_FAILED


class DownstreamLoadError(GitAdapterError):
    """The configuration interpreter rejected or could not read the entry file."""
    error_code = ErrorCode.DOWNSTREAM_LOAD_FAILED
    category = ErrorCategory.DOWNSTREAM


@dataclass
class ErrorResponse:
    """Standardized error response format for server tools."""
    error: str
    error_code: str
    message: str
    timestamp: str
    category: str
    context: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert error response to dictionary format."""
        result = {
            "success": False,
            "error": self.error,
            "error_code": self.error_code,
            "message": self.message,
            "timestamp": self.timestamp,
            "category": self.category
        }
        if self.context:
            result["context"] = self.context
        return result


class ErrorHandler:
    """Turns adapter failures into structured responses."""

    def __init__(self):
        self.logger = logging.getLogger('gitadapter.error_handler')

    def handle_adapter_error(self, error: Exception, context: Dict[str, Any] = None) -> ErrorResponse:
        """Handle any error raised while resolving, syncing or loading."""
        context = context or {}

        if isinstance(error, GitAdapterError):
            error_code = error.error_code.value
            category = error.category.value
            message = error.message
            if error.cause is not None:
                context.setdefault("cause", str(error.cause))
        else:
            error_code = "UNEXPECTED_ERROR"
            category = ErrorCategory.SYSTEM.value
            message = f"Unexpected error: {error}"

        if category == ErrorCategory.RESOLUTION.value:
            summary = "Adapter configuration is invalid"
        elif category == ErrorCategory.GIT_SYNC.value:
            summary = "Git sync operation failed"
        elif category == ErrorCategory.DOWNSTREAM.value:
            summary = "Configuration load failed"
        else:
            summary = "Adapter operation failed"

        error_response = ErrorResponse(
            error=summary,
            error_code=error_code,
            message=message,
            timestamp=datetime.now().isoformat(),
            category=category,
            context=context
        )

        log = self.logger.warning if category == ErrorCategory.RESOLUTION.value else self.logger.error
        log(
            f"{summary}: {message}",
            extra={
                'operation': 'adapter_error',
                'error_code': error_code,
                'repository_path': context.get('repository_path')
            }
        )

        return error_response

    def create_success_response(self, operation: str, data: Dict[str, Any], context: Dict[str, Any] = None) -> Dict[str, Any]:
        """Create a standardized success response."""
        response = {
            "success": True,
            "operation": operation,
            "timestamp": datetime.now().isoformat(),
            "data": data
        }

        if context:
            response["context"] = context

        return response


# Initialize global error handler
error_handler = ErrorHandler()
