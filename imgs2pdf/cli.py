from __future__ import annotations

import argparse
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from .errors import ArgumentError, MergeError
from .loader import load_images, resolve_sources
from .model import MergeConfig
from .pdf import compose_document, normalize_output_path, write_pdf
from .scale import scale_image

try:
    __version__ = version("imgs2pdf")
except PackageNotFoundError:
    # Running from a source checkout that was never installed.
    __version__ = "0+unknown"

log = logging.getLogger(__name__)


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting on bad input."""

    def error(self, message: str):
        raise ArgumentError(message)


def _output_path(value: str) -> Path:
    try:
        return normalize_output_path(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} could not be parsed as a float") from None
    if not number > 0 or number == float("inf"):
        raise argparse.ArgumentTypeError(f"{value!r} must be a positive number")
    return number


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} could not be parsed as an unsigned integer") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"{value!r} must be a positive integer")
    return number


def build_parser() -> argparse.ArgumentParser:
    # -h belongs to --scale-height, so help is registered by hand as --help only.
    p = _Parser(
        prog="imgs2pdf",
        description="Merge multiple images into a single PDF, one image per page.",
        add_help=False,
    )
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("-d", "--dir", type=Path, help="Directory of images")
    src.add_argument(
        "-i",
        "--imgs",
        type=Path,
        nargs="*",
        help="Paths to multiple images separated with a whitespace",
    )
    p.add_argument(
        "-o",
        "--out",
        type=_output_path,
        required=True,
        help="Output PDF path (a .pdf extension is added when missing)",
    )
    p.add_argument("--dpi", type=_positive_float, default=100.0, help="Resolution used to size pages (default: 100.0)")
    p.add_argument(
        "-w",
        "--scale-width",
        type=_positive_int,
        default=1080,
        help="Maximum image width in pixels (default: 1080)",
    )
    p.add_argument(
        "-h",
        "--scale-height",
        type=_positive_int,
        default=1920,
        help="Maximum image height in pixels (default: 1920)",
    )
    p.add_argument("-t", "--pdf-title", default="", help="Title stored in the PDF metadata")
    p.add_argument(
        "-s",
        "--auto-sort",
        action="store_true",
        help="Sort images by file name, numbers compared by value (page2 before page10)",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Log every decode/scale/page step to stderr")
    p.add_argument("--help", action="help", help="Show this help message and exit")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def parse_config(argv: list[str] | None = None) -> MergeConfig:
    args = build_parser().parse_args(argv)
    return MergeConfig(
        out=args.out,
        dir=args.dir,
        imgs=args.imgs,
        dpi=args.dpi,
        scale_width=args.scale_width,
        scale_height=args.scale_height,
        pdf_title=args.pdf_title,
        auto_sort=bool(args.auto_sort),
        verbose=bool(args.verbose),
    )


def run(config: MergeConfig) -> Path:
    """Run the whole pipeline; nothing is written unless every page succeeds."""

    sources = resolve_sources(config)
    total = len(sources)
    log.info("Merging %d images into %s", total, config.out)

    scaled = (
        scale_image(decoded, max_width=config.scale_width, max_height=config.scale_height)
        for decoded in load_images(sources)
    )

    def report(idx, page):
        ow, oh = page.original_size
        print(f"[{idx + 1}/{total}] {page.source.path.name} {ow}x{oh} -> {page.width}x{page.height}")

    writer = compose_document(scaled, dpi=config.dpi, title=config.pdf_title, on_page=report)
    return write_pdf(writer, config.out)


def main(argv: list[str] | None = None) -> int:
    try:
        config = parse_config(argv)
    except ArgumentError as e:
        parser = build_parser()
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: {e}", file=sys.stderr)
        return e.exit_code

    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        out_path = run(config)
    except MergeError as e:
        print(str(e), file=sys.stderr)
        return e.exit_code
    except KeyboardInterrupt:
        print("Stopped by user.", file=sys.stderr)
        return 130

    print(f"Created the PDF successfully `{out_path}`")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
