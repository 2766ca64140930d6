"""
mhtml2pdf Orchestrator: runs the conversion pipeline for each input archive.

The pipeline is strictly linear and fails fast:

    strip preamble -> trim -> read header -> decode -> select HTML
    -> persist resources -> rewrite -> save HTML -> render -> save PDF -> cleanup

Artifacts of a failed conversion stay on disk for inspection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .assets import ReferenceRewriter, ResourcePersister, parse_html_part, select_html_part
from .exceptions import FileOpenError, Mhtml2PdfError
from .logger import create_error_tracker
from .mime import RawPart, boundary_of, read_mime_header
from .multipart import MultipartDecoder
from .pdf_generator import (DEFAULT_READY_SELECTOR, DEFAULT_RENDER_TIMEOUT,
                            DEFAULT_USER_AGENT, PDFGenerator)
from .streams import open_normalized
from ..utils.file_manager import FileManager
from ..utils.validators import validate_input_path


@dataclass
class ConversionConfig:
    engine: str = "chromium"
    user_agent: str = DEFAULT_USER_AGENT
    ready_selector: str = DEFAULT_READY_SELECTOR
    render_timeout: float = DEFAULT_RENDER_TIMEOUT  # seconds
    keep_artifacts: bool = False
    fail_fast: bool = True
    verbose: bool = False
    error_report_path: Optional[str] = None


@dataclass
class ConversionResult:
    source: str
    pdf_path: str
    html_path: str
    parts: int
    resources: int
    rewritten: int
    locations: Dict[str, str] = field(default_factory=dict)


class ConversionController:
    def __init__(self,
                 config: Optional[ConversionConfig] = None,
                 pdf_generator: Optional[PDFGenerator] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = config or ConversionConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.decoder = MultipartDecoder()
        self.rewriter = ReferenceRewriter()
        self.pdf = pdf_generator or PDFGenerator(engine=self.config.engine,
                                                 user_agent=self.config.user_agent,
                                                 ready_selector=self.config.ready_selector,
                                                 timeout=self.config.render_timeout)
        self.error_tracker = create_error_tracker('controller')

    def decode_file(self, path: str) -> List[RawPart]:
        """Read an archive and return its flattened parts."""
        try:
            fd = open(path, 'rb')
        except OSError as e:
            raise FileOpenError(f"cannot open file: {e}", source=path, original_error=e) from e

        with fd:
            stream = open_normalized(fd)
            try:
                headers = read_mime_header(stream)
                return self.decoder.decode(stream, boundary_of(headers))
            except OSError as e:
                raise FileOpenError(f"cannot read file: {e}", source=path, original_error=e) from e

    def convert_file(self,
                     path: str,
                     progress: Optional[Callable[[object], None]] = None,
                     index: int = 1) -> ConversionResult:
        """
        Convert one archive to ``<base>.pdf``.

        Raises:
            Mhtml2PdfError: any stage failure, with ``source`` set to the input
        """
        stage = "validating"

        def enter(next_stage: str):
            nonlocal stage
            stage = next_stage
            self.logger.debug(f"[{index}] {stage}: {path}")
            if progress:
                progress({"type": "file", "index": index, "stage": stage, "path": path})

        try:
            enter("validating")
            ok, source, error = validate_input_path(path)
            if not ok:
                raise FileOpenError(error, source=path)

            files = FileManager(source)

            enter("decoding")
            parts = self.decode_file(source)
            html_index = select_html_part(parts)
            self.logger.info(f"Decoded {len(parts)} parts from {source}; document is part {html_index}")

            enter("persisting")
            mapping = ResourcePersister(files, self.error_tracker).persist(parts, html_index)

            enter("rewriting")
            soup = parse_html_part(parts[html_index])
            rewritten = self.rewriter.rewrite(soup, mapping, base_dir=files.html_dir)
            html_path = files.save_html(self.rewriter.render_html(soup))

            enter("rendering")
            pdf_bytes = self.pdf.generate_pdf(html_path)
            pdf_path = files.save_pdf(pdf_bytes)

            if self.config.keep_artifacts:
                kept = files.get_artifact_stats()
                self.logger.info(f"Kept {kept['resource_files']} resource files "
                                 f"({kept['total_resource_size']} bytes) in {kept['resources_dir']}")
            else:
                enter("cleanup")
                files.cleanup()

            enter("completed")
            return ConversionResult(source=source,
                                    pdf_path=pdf_path,
                                    html_path=html_path,
                                    parts=len(parts),
                                    resources=len(parts) - 1,
                                    rewritten=rewritten,
                                    locations=mapping)

        except Mhtml2PdfError as e:
            if e.source is None:
                e.source = path
            self.error_tracker.log_error(e, context=stage, source=e.source)
            if progress:
                progress({"type": "file", "index": index, "stage": "failed", "path": path, "reason": stage})
            raise

    def convert_batch(self,
                      paths: List[str],
                      progress: Optional[Callable[[object], None]] = None) -> Dict[str, Any]:
        """
        Convert archives one after another.

        With ``fail_fast`` (the default) the first failure is re-raised and
        the remaining files are not attempted. Otherwise failures are counted
        and processing continues.

        Returns:
            Counters, per-file results and the error summary
        """
        if not paths:
            raise ValueError("no mht files given")

        stats: Dict[str, Any] = {"total": len(paths), "converted": 0, "failed": 0}
        results: List[ConversionResult] = []

        try:
            for idx, path in enumerate(paths, 1):
                self.logger.info(f"processing {path}")
                try:
                    results.append(self.convert_file(path, progress=progress, index=idx))
                    stats["converted"] += 1
                except Mhtml2PdfError:
                    stats["failed"] += 1
                    if self.config.fail_fast:
                        raise
        finally:
            if self.config.error_report_path and self.error_tracker.errors:
                self.error_tracker.save_error_report(self.config.error_report_path)

        stats["results"] = results
        stats["errors"] = self.error_tracker.get_error_summary()
        if progress:
            progress({"type": "counters", "stats": {k: stats[k] for k in ("total", "converted", "failed")}})
        return stats
