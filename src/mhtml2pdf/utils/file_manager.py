"""
File Management Utilities

Owns the names and lifetime of everything a conversion writes next to its
input archive:

    <base>_files/<mime-type>/<index><ext>   extracted resources
    <base>.html                             rewritten document
    <base>.pdf                              rendered output

where ``<base>`` is the input path without its extension.
"""

import os
import shutil
import logging
from typing import Dict, Any

from ..core.exceptions import PersistenceError


class FileManager:
    """
    Manages the artifact files of a single input archive.
    """

    def __init__(self, source_path: str):
        """
        Initialize the file manager.

        Args:
            source_path: Path of the MHTML archive being converted
        """
        self.source_path = source_path
        self.base_path = os.path.splitext(source_path)[0]
        self.resources_dir = self.base_path + "_files"
        self.html_path = self.base_path + ".html"
        self.pdf_path = self.base_path + ".pdf"
        self.logger = logging.getLogger(__name__)

    @property
    def html_dir(self) -> str:
        """Directory the rewritten HTML document lives in."""
        return os.path.dirname(os.path.abspath(self.html_path))

    def resource_path(self, mimetype: str, index: int, extension: str) -> str:
        """
        Get the path a resource part is written to.

        Args:
            mimetype: Parsed MIME type, e.g. ``image/png``
            index: Position of the part in decode order
            extension: File extension including the dot

        Returns:
            ``<base>_files/<mimetype>/<index><ext>`` with forward slashes in
            the MIME type turned into directory levels
        """
        return os.path.join(self.resources_dir, *mimetype.split('/'), f"{index}{extension}")

    def write_resource(self, mimetype: str, index: int, extension: str, body: bytes) -> str:
        """
        Write a resource body, creating its type directory as needed.

        Returns:
            Path of the written file

        Raises:
            PersistenceError: if the directory or file cannot be written
        """
        path = self.resource_path(mimetype, index, extension)
        directory = os.path.dirname(path)
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"cannot create dir {directory}: {e}",
                                   part_index=index, original_error=e) from e
        try:
            with open(path, 'wb') as f:
                f.write(body)
        except OSError as e:
            raise PersistenceError(f"cannot write file {path}: {e}",
                                   part_index=index, original_error=e) from e

        self.logger.debug(f"Saved resource ({len(body)} bytes): {path}")
        return path

    def save_html(self, html_content: str) -> str:
        """
        Save the rewritten HTML document as UTF-8.

        Returns:
            Path to the saved file
        """
        try:
            with open(self.html_path, 'w', encoding='utf-8') as f:
                f.write(html_content)
        except OSError as e:
            raise PersistenceError(f"cannot write file {self.html_path}: {e}", original_error=e) from e

        file_size = os.path.getsize(self.html_path)
        self.logger.info(f"Saved HTML ({file_size} bytes): {os.path.basename(self.html_path)}")
        return self.html_path

    def save_pdf(self, pdf_bytes: bytes) -> str:
        """
        Save rendered PDF bytes next to the input archive.

        Returns:
            Path to the saved file
        """
        try:
            with open(self.pdf_path, 'wb') as f:
                f.write(pdf_bytes)
        except OSError as e:
            raise PersistenceError(f"cannot write file {self.pdf_path}: {e}", original_error=e) from e

        self.logger.info(f"Saved PDF ({len(pdf_bytes)} bytes): {os.path.basename(self.pdf_path)}")
        return self.pdf_path

    def get_artifact_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the intermediate artifacts on disk.

        Returns:
            Dictionary with resource file count and total size
        """
        stats = {
            'resource_files': 0,
            'total_resource_size': 0,
            'resources_dir': self.resources_dir,
            'html_exists': os.path.exists(self.html_path),
        }

        for root, _, files in os.walk(self.resources_dir):
            for name in files:
                stats['resource_files'] += 1
                stats['total_resource_size'] += os.path.getsize(os.path.join(root, name))

        return stats

    def cleanup(self) -> None:
        """
        Remove the resource directory and the intermediate HTML document.

        Raises:
            PersistenceError: if removal fails
        """
        try:
            if os.path.isdir(self.resources_dir):
                shutil.rmtree(self.resources_dir)
                self.logger.debug(f"Removed directory: {self.resources_dir}")
            if os.path.exists(self.html_path):
                os.remove(self.html_path)
                self.logger.debug(f"Removed file: {self.html_path}")
        except OSError as e:
            raise PersistenceError(f"cleanup failed: {e}", original_error=e) from e
