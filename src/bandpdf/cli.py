"""
Command line entry point.

    bandpdf render TEMPLATE [--data DATA] [-o OUT] [--strict] [--timeout S] [-v]
    bandpdf validate TEMPLATE [--data DATA]

Exit codes: 0 success, 1 diagnostics with --strict or validation
problems, 2 template or render failure.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from bandpdf import __version__
from bandpdf.core.models import TemplateError
from bandpdf.core.schemas import validate_data, validate_template
from bandpdf.core.utils.serialization import load_data, load_template
from bandpdf.engine.config import RenderOptions
from bandpdf.engine.controller import RenderError, render_document
from bandpdf.plugins.registry import default_registry

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bandpdf",
        description="Render band-based JSON templates to PDF.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    commands = parser.add_subparsers(dest="command", required=True)

    render = commands.add_parser("render", help="Render a template to PDF")
    render.add_argument("template", help="Path to the JSON template")
    render.add_argument("--data", help="Path to the JSON data payload")
    render.add_argument("-o", "--output", help="Output PDF path (default: TEMPLATE with .pdf)")
    render.add_argument("--strict", action="store_true", help="Exit 1 when any diagnostic was recorded")
    render.add_argument("--timeout", type=float, default=30.0, help="Seconds allowed per resource fetch")
    render.add_argument("--last-page-footer", choices=("document", "section"), default="document",
                        help="Where lastPageFooter replaces pageFooter")
    render.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    validate = commands.add_parser("validate", help="Check a template (and optional data) without rendering")
    validate.add_argument("template", help="Path to the JSON template")
    validate.add_argument("--data", help="Path to the JSON data payload")
    validate.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _render(args: argparse.Namespace) -> int:
    template_path = Path(args.template)
    output = Path(args.output) if args.output else template_path.with_suffix(".pdf")
    options = RenderOptions(fetch_timeout=args.timeout, last_page_footer_scope=args.last_page_footer)

    try:
        result = render_document(template_path, args.data, options)
    except (TemplateError, RenderError, FileNotFoundError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    result.write(output)
    print(f"Wrote {result.page_count} pages to {output}")
    for diagnostic in result.diagnostics:
        print(f"  {diagnostic}")
    if args.strict and result.diagnostics:
        return 1
    return 0


def _validate(args: argparse.Namespace) -> int:
    try:
        template = load_template(args.template)
        data = load_data(args.data) if args.data else None
    except (TemplateError, FileNotFoundError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    problems = validate_template(template, default_registry().types)
    if data is not None:
        problems.extend(f"data: {message}" for message in validate_data(data, template.data_schema))

    if not problems:
        print(f"{args.template}: OK")
        return 0
    for problem in problems:
        print(f"  {problem}")
    print(f"{args.template}: {len(problems)} problem(s)")
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    if args.command == "render":
        return _render(args)
    return _validate(args)


if __name__ == "__main__":
    sys.exit(main())
