"""
Error Taxonomy for the Line Counting Pipeline
=============================================

Three kinds of failure exist:

1. Filesystem-topology errors while walking (permission denied, dangling
   symlinks). These never surface as exceptions, the walker skips them.
2. Per-file classification errors (unreadable or undecodable content),
   raised as FileClassificationError and recovered inside the worker.
3. Whole-run outcomes (no relevant files, every relevant file faulty),
   raised to the caller as ParseFilesError subclasses.
"""

import time
import traceback
from typing import Any, Dict, List, Optional


class LineCountError(Exception):
    """Base class for every error raised by the pipeline"""

    error_code: Optional[str] = None

    def __init__(self, message: str, cause: Optional[Exception] = None,
                 details: Optional[Dict[str, Any]] = None):
        """
        Initialize a pipeline error.

        Args:
            message: Error description
            cause: Original exception that caused this error
            details: Additional error context
        """
        super().__init__(message)
        self.cause = cause
        self.details = details or {}
        self.timestamp = time.time()
        self.traceback = traceback.format_exc() if cause else None

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.cause:
            return f"{base_msg} (caused by {type(self.cause).__name__}: {self.cause})"
        return base_msg

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(message={super().__str__()!r}, "
                f"cause={self.cause!r}, details={self.details!r})")

    def log_context(self) -> Dict[str, Any]:
        """Get error context for structured logging"""
        return {
            'error_type': type(self).__name__,
            'error_code': self.error_code,
            'message': str(self),
            'timestamp': self.timestamp,
            'details': self.details,
            'cause': str(self.cause) if self.cause else None
        }


class ConfigurationError(LineCountError, ValueError):
    """Invalid configuration value"""
    error_code = 'config'


class CatalogError(LineCountError):
    """Malformed extension grammar data"""
    error_code = 'catalog'


class FileClassificationError(LineCountError):
    """A relevant file could not be read or decoded"""
    error_code = 'faulty_file'

    def __init__(self, path: str, cause: Exception):
        super().__init__(f"Could not classify {path}", cause=cause,
                         details={'path': path})
        self.path = path

    def reason(self) -> str:
        """Short description of the underlying failure"""
        if isinstance(self.cause, UnicodeDecodeError):
            return f"invalid UTF-8 data at byte {self.cause.start}"
        if isinstance(self.cause, OSError) and self.cause.strerror:
            return self.cause.strerror
        return str(self.cause)


class ParseFilesError(LineCountError):
    """Terminal outcome of a run that produced nothing to report"""

    def formatted(self) -> str:
        return str(self)


class NoRelevantFilesError(ParseFilesError):
    """The walk found no file with an active extension"""
    error_code = 'no_relevant_files'

    def __init__(self, activated_extensions: Optional[List[str]] = None):
        self.activated_extensions = list(activated_extensions or [])
        super().__init__("No relevant files found in the given directory.",
                         details={'activated_extensions': self.activated_extensions})

    def formatted(self) -> str:
        message = super().formatted()
        if self.activated_extensions:
            message += f"\n(Activated extensions: {', '.join(self.activated_extensions)})"
        return message


class AllFilesFaultyError(ParseFilesError):
    """Every relevant file failed to be read or decoded"""
    error_code = 'all_faulty'

    def __init__(self, faulty_count: int, faulty_files: Optional[List[Any]] = None):
        self.faulty_count = faulty_count
        self.faulty_files = list(faulty_files or [])
        super().__init__("None of the files were able to be parsed",
                         details={'faulty_count': faulty_count})
