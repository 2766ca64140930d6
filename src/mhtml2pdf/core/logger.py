"""
Logging and Error Handling System

This module provides centralized logging configuration and error tracking
for MHTML to PDF conversions.
"""

import logging
import logging.handlers
import os
import sys
from datetime import datetime
from typing import Optional, Dict, Any
import traceback
from pathlib import Path


APP_NAME = "mhtml2pdf"


class ConversionLogger:
    """
    Centralized logging system for mhtml2pdf.

    Configures the package logger with a rotating detailed log file, an
    errors-only log file and console output. Module loggers created with
    ``logging.getLogger(__name__)`` inside the package propagate to it.
    """

    def __init__(self, log_dir: str = "logs", app_name: str = APP_NAME):
        """
        Initialize the logging system.

        Args:
            log_dir: Directory to store log files
            app_name: Name of the application logger
        """
        self.log_dir = Path(log_dir)
        self.app_name = app_name
        self.loggers: Dict[str, logging.Logger] = {}

        # Ensure log directory exists
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def setup_logger(self, level: int = logging.INFO, console_level: int = logging.INFO) -> logging.Logger:
        """
        Set up the application logger with file and console handlers.

        Args:
            level: Level of the application logger
            console_level: Level of the console handler

        Returns:
            Configured logger instance
        """
        logger = logging.getLogger(self.app_name)
        logger.setLevel(level)

        # Prevent duplicate handlers
        if logger.handlers:
            for handler in logger.handlers:
                if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                    handler.setLevel(console_level)
            self.loggers['main'] = logger
            return logger

        detailed_formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_formatter = logging.Formatter(
            '%(asctime)s | %(levelname)s | %(message)s',
            datefmt='%H:%M:%S'
        )

        # File handler with rotation
        log_file = self.log_dir / f"{self.app_name}.log"
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(console_formatter)

        error_file = self.log_dir / f"{self.app_name}_errors.log"
        error_handler = logging.handlers.RotatingFileHandler(
            error_file,
            maxBytes=5*1024*1024,  # 5MB
            backupCount=3,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(detailed_formatter)

        logger.addHandler(file_handler)
        logger.addHandler(console_handler)
        logger.addHandler(error_handler)

        self.loggers['main'] = logger
        return logger

    def get_logger(self, name: str) -> logging.Logger:
        """
        Get a logger for a specific component.

        Args:
            name: Name of the component

        Returns:
            Logger instance named ``<app_name>.<name>``
        """
        full_name = f"{self.app_name}.{name}"

        if full_name not in self.loggers:
            self.loggers[full_name] = logging.getLogger(full_name)

        return self.loggers[full_name]

    def log_system_info(self):
        """Log system information for debugging."""
        logger = self.get_logger('system')

        logger.debug("=== mhtml2pdf started ===")
        logger.debug(f"Python version: {sys.version}")
        logger.debug(f"Platform: {sys.platform}")
        logger.debug(f"Working directory: {os.getcwd()}")
        logger.debug(f"Log directory: {self.log_dir.absolute()}")


class ErrorTracker:
    """
    Tracks the errors and warnings raised while converting a batch.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.errors: list = []
        self.warnings: list = []

    def log_error(self,
                  error: Exception,
                  context: str = None,
                  source: str = None,
                  additional_info: Dict[str, Any] = None) -> str:
        """
        Log an error with context information.

        Args:
            error: The exception that occurred
            context: Pipeline stage where the error occurred
            source: Input archive being converted
            additional_info: Additional information about the error

        Returns:
            Error ID for tracking
        """
        error_id = f"ERR_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{len(self.errors):03d}"

        error_data = {
            'id': error_id,
            'timestamp': datetime.now(),
            'type': type(error).__name__,
            'message': str(error),
            'context': context,
            'source': source,
            'part_index': getattr(error, 'part_index', None),
            'traceback': ''.join(traceback.format_exception(type(error), error, error.__traceback__)),
            'additional_info': additional_info or {}
        }

        self.errors.append(error_data)

        log_message = f"[{error_id}] {error_data['type']}: {error_data['message']}"
        if context:
            log_message += f" (Context: {context})"

        self.logger.error(log_message)
        self.logger.debug(f"[{error_id}] Full traceback:\n{error_data['traceback']}")

        return error_id

    def log_warning(self,
                    message: str,
                    context: str = None,
                    source: str = None) -> str:
        """
        Log a warning with context information.

        Returns:
            Warning ID for tracking
        """
        warning_id = f"WARN_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{len(self.warnings):03d}"

        self.warnings.append({
            'id': warning_id,
            'timestamp': datetime.now(),
            'message': message,
            'context': context,
            'source': source
        })

        log_message = f"[{warning_id}] {message}"
        if context:
            log_message += f" (Context: {context})"
        if source:
            log_message += f" (File: {source})"

        self.logger.warning(log_message)

        return warning_id

    def get_error_summary(self) -> Dict[str, Any]:
        """
        Get a summary of all errors and warnings.

        Returns:
            Dictionary with error statistics and details
        """
        return {
            'total_errors': len(self.errors),
            'total_warnings': len(self.warnings),
            'error_types': self._count_error_types(),
            'failed_sources': [e['source'] for e in self.errors if e['source']],
            'recent_errors': self.errors[-5:] if self.errors else [],
            'recent_warnings': self.warnings[-5:] if self.warnings else []
        }

    def _count_error_types(self) -> Dict[str, int]:
        """Count errors by type."""
        type_counts = {}
        for error in self.errors:
            error_type = error['type']
            type_counts[error_type] = type_counts.get(error_type, 0) + 1
        return type_counts

    def save_error_report(self, output_path: str):
        """
        Save a detailed error report to a file.

        Args:
            output_path: Path where the report should be saved
        """
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write("MHTML2PDF ERROR REPORT\n")
            f.write("=" * 50 + "\n\n")
            f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
            f.write(f"Total Errors: {len(self.errors)}\n")
            f.write(f"Total Warnings: {len(self.warnings)}\n\n")

            if self.errors:
                f.write("ERRORS:\n")
                f.write("-" * 30 + "\n")
                for error in self.errors:
                    f.write(f"\n[{error['id']}] {error['timestamp']}\n")
                    f.write(f"Type: {error['type']}\n")
                    f.write(f"Message: {error['message']}\n")
                    if error['context']:
                        f.write(f"Context: {error['context']}\n")
                    if error['source']:
                        f.write(f"File: {error['source']}\n")
                    if error['part_index'] is not None:
                        f.write(f"Part: {error['part_index']}\n")
                    f.write(f"Traceback:\n{error['traceback']}\n")
                    f.write("-" * 50 + "\n")

            if self.warnings:
                f.write("\nWARNINGS:\n")
                f.write("-" * 30 + "\n")
                for warning in self.warnings:
                    f.write(f"\n[{warning['id']}] {warning['timestamp']}\n")
                    f.write(f"Message: {warning['message']}\n")
                    if warning['context']:
                        f.write(f"Context: {warning['context']}\n")
                    if warning['source']:
                        f.write(f"File: {warning['source']}\n")
                    f.write("-" * 30 + "\n")

        self.logger.info(f"Error report saved to: {output_path}")


# Global logger instance
_logger_instance: Optional[ConversionLogger] = None


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Before ``initialize_logging`` runs this returns plain package loggers
    without attaching any handlers.

    Args:
        name: Name of the component (optional)

    Returns:
        Logger instance
    """
    name = name or 'main'
    if _logger_instance is None:
        return logging.getLogger(f"{APP_NAME}.{name}")
    return _logger_instance.get_logger(name)


def initialize_logging(log_dir: str = "logs", level: int = logging.INFO, verbose: bool = False):
    """
    Initialize the global logging system.

    Args:
        log_dir: Directory for log files
        level: Logging level
        verbose: Also show DEBUG messages on the console
    """
    global _logger_instance
    _logger_instance = ConversionLogger(log_dir)
    if verbose:
        level = min(level, logging.DEBUG)
    _logger_instance.setup_logger(level, console_level=logging.DEBUG if verbose else logging.INFO)
    _logger_instance.log_system_info()


def create_error_tracker(logger_name: str = None) -> ErrorTracker:
    """
    Create an error tracker instance.

    Args:
        logger_name: Name of the logger to use

    Returns:
        ErrorTracker instance
    """
    return ErrorTracker(get_logger(logger_name))
