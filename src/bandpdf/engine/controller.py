"""
Module: engine.controller

Purpose:
    Orchestrate the complete render pipeline.
    Load -> Validate data -> Register fonts -> Prefetch images ->
    Paginate -> Collect anchors -> Render

Key Functions:
    - render_document(): Main entry point for rendering a template

Key Classes:
    - RenderResult: PDF bytes, page count, diagnostics and the layout
    - RenderError: Unexpected failure inside the pipeline

Dependencies:
    - engine.layout: Pagination and anchors
    - engine.output: PDF rendering
    - engine.resources: Image prefetch
    - core.schemas: Data validation (jsonschema)

Used By:
    - bandpdf (public API)
    - cli: render command
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple, Union

from bandpdf.core.models import Template, TemplateError
from bandpdf.core.schemas import validate_data
from bandpdf.core.utils.serialization import TemplateSource, load_data, load_template
from bandpdf.engine.config import RenderOptions
from bandpdf.engine.diagnostics import Diagnostic, DiagnosticKind, DiagnosticsCollector
from bandpdf.engine.layout.anchors import collect_anchors
from bandpdf.engine.layout.binding import PLACEHOLDER_RE, PlaceholderResolver
from bandpdf.engine.layout.models import LayoutResult
from bandpdf.engine.layout.paginator import paginate
from bandpdf.engine.output.fonts import FontRegistry
from bandpdf.engine.output.renderer import render_pdf
from bandpdf.engine.resources import BarcodeCache, ChartCache, ImageCache, ResourceError, fetch_source_bytes
from bandpdf.engine.services import EngineServices
from bandpdf.plugins.registry import default_registry

logger = logging.getLogger(__name__)

DataSource = Union[Mapping[str, Any], str, Path, None]


class RenderError(Exception):
    """Unexpected failure while rendering a document."""
    pass


@dataclass(frozen=True)
class RenderResult:
    """
    Complete render result (immutable).

    Attributes:
        pdf_bytes: The rendered PDF
        page_count: Number of pages
        diagnostics: Recoverable problems found along the way
        layout: The paginated layout the PDF was drawn from

    Example:
        >>> result = render_document("invoice.json", {"items": rows})
        >>> print(f"Rendered {result.page_count} pages with {len(result.diagnostics)} diagnostics")
        >>> result.write(Path("out/invoice.pdf"))
    """

    pdf_bytes: bytes
    page_count: int
    diagnostics: Tuple[Diagnostic, ...]
    layout: LayoutResult

    def write(self, path: Union[str, Path]) -> Path:
        """Write the PDF, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.pdf_bytes)
        return path


def render_document(
    template: TemplateSource,
    data: DataSource = None,
    options: Optional[RenderOptions] = None,
) -> RenderResult:
    """
    Render a template with data to PDF.

    Pipeline:
    1. Load template and data
    2. Validate data against the template's dataSchema
    3. Register declared fonts
    4. Prefetch static image sources concurrently
    5. Paginate
    6. Collect anchors
    7. Render pages

    Args:
        template: Template, template mapping, or path to a JSON template
        data: Data mapping or path to a JSON file
        options: Render options (defaults when None)

    Returns:
        RenderResult with PDF bytes and diagnostics

    Raises:
        TemplateError: Template is structurally invalid
        RenderError: Any unexpected failure in the pipeline
    """
    options = options or RenderOptions()
    start_time = time.perf_counter()

    base_dir = options.base_dir
    if base_dir is None and isinstance(template, (str, Path)):
        base_dir = Path(template).resolve().parent

    # 1. Load
    tpl = load_template(template)
    payload = load_data(data)
    logger.info(f"Rendering template '{tpl.name}' ({len(tpl.sections)} sections)")

    diagnostics = DiagnosticsCollector()
    services = EngineServices(
        registry=options.registry or default_registry(),
        resolver=options.resolver or PlaceholderResolver(),
        fonts=FontRegistry(),
        images=options.image_cache or ImageCache(timeout=options.fetch_timeout, base_dir=base_dir),
        barcodes=options.barcode_cache or BarcodeCache(),
        charts=options.chart_cache or ChartCache(),
        diagnostics=diagnostics,
        styles=tpl.styles,
        default_style=tpl.default_style,
    )
    if options.image_cache is not None:
        # Failed sources are only remembered for the length of one request
        options.image_cache.forget_failures()

    try:
        # 2. Validate data
        if options.validate_data and tpl.data_schema:
            diagnostics.extend(DiagnosticKind.DATA, validate_data(payload, tpl.data_schema))

        # 3. Fonts
        _register_fonts(tpl, services, options, base_dir)

        # 4. Prefetch
        sources = static_image_sources(tpl)
        if sources:
            loaded = services.images.prefetch(sources, max_workers=options.prefetch_workers)
            logger.info(f"Prefetched {loaded}/{len(sources)} images")

        # 5. Paginate
        layout = paginate(
            tpl,
            payload,
            services,
            last_page_footer_scope=options.last_page_footer_scope,
        )

        # 6. Anchors
        anchors = collect_anchors(
            layout,
            warn_duplicates=options.warn_duplicate_anchors,
            diagnostics=diagnostics,
            resolver=services.resolver,
        )

        # 7. Render
        pdf = render_pdf(layout, services, anchors=anchors, title=tpl.name)
    except TemplateError:
        raise
    except Exception as e:
        raise RenderError(f"Failed to render '{tpl.name}': {e}") from e

    elapsed = time.perf_counter() - start_time
    logger.info(
        f"Rendered {layout.page_count} pages in {elapsed:.2f}s "
        f"with {len(diagnostics)} diagnostics"
    )
    return RenderResult(
        pdf_bytes=pdf,
        page_count=layout.page_count,
        diagnostics=diagnostics.snapshot(),
        layout=layout,
    )


def _register_fonts(
    template: Template,
    services: EngineServices,
    options: RenderOptions,
    base_dir: Optional[Path],
) -> None:
    def fetch(src: str) -> bytes:
        return fetch_source_bytes(src, timeout=options.fetch_timeout, base_dir=base_dir)

    for declaration in template.fonts:
        try:
            services.fonts.register(declaration, fetch)
        except ResourceError as e:
            services.diagnostics.add(
                DiagnosticKind.RESOURCE,
                f"Font '{declaration.family}' unavailable, falling back to Helvetica: {e}",
            )


def static_image_sources(template: Template) -> List[str]:
    """Image sources that need no data binding, in template order."""
    sources: List[str] = []
    for element in template.iter_elements():
        if element.type != "image":
            continue
        src = element.properties.get("src")
        if isinstance(src, str) and src and not PLACEHOLDER_RE.search(src) and src not in sources:
            sources.append(src)
    return sources
