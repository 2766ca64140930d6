"""
Input Validation Utilities

This module checks that an input archive path can be converted before any
stage of the pipeline touches it.
"""

import os
from typing import Tuple, Optional
import logging


MHTML_EXTENSIONS = ('.mht', '.mhtml')


class InputValidator:
    """
    Validates and normalizes input archive paths.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def validate_and_normalize(self, path: str) -> Tuple[bool, str, str]:
        """
        Validate an input path for conversion.

        Args:
            path: Path of the archive as given by the caller

        Returns:
            Tuple of (is_valid, normalized_path, error_message). The
            normalized path keeps the caller's relative/absolute form so that
            artifacts land next to the input.
        """
        if not path or not isinstance(path, (str, os.PathLike)):
            return False, "", "Path cannot be empty"

        path = os.path.normpath(os.fspath(path))

        if not os.path.exists(path):
            return False, "", f"No such file: {path}"
        if not os.path.isfile(path):
            return False, "", f"Not a regular file: {path}"
        if not os.access(path, os.R_OK):
            return False, "", f"File is not readable: {path}"

        if os.path.splitext(path)[1].lower() not in MHTML_EXTENSIONS:
            self.logger.warning(f"Unexpected extension for an MHTML archive: {path}")

        return True, path, ""


# Global validator instance
_validator_instance: Optional[InputValidator] = None


def get_validator() -> InputValidator:
    """
    Get the global input validator instance.

    Returns:
        InputValidator instance
    """
    global _validator_instance
    if _validator_instance is None:
        _validator_instance = InputValidator()
    return _validator_instance


def validate_input_path(path: str) -> Tuple[bool, str, str]:
    """
    Validate an input archive path.

    Args:
        path: Path to validate

    Returns:
        Tuple of (is_valid, normalized_path, error_message)
    """
    return get_validator().validate_and_normalize(path)
