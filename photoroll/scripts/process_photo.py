from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from photoroll.services.config import PipelineConfig, Settings
from photoroll.services.errors import PhotorollError
from photoroll.services.naming import object_name, url_namer
from photoroll.services.upload_pipeline import PipelineResult, run_pipeline


logger = logging.getLogger(__name__)

# CLI flag -> PipelineConfig field
CONFIG_FLAGS = (
    "palette_size",
    "tiny_preview_max_dimension",
    "png_max_colors",
    "jpeg_quality",
    "webp_quality",
    "min_variant_width",
    "max_workers",
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="photoroll",
        description="Turn photos into web-ready variants plus a JSON descriptor",
    )
    parser.add_argument("paths", nargs="+", help="Image files to process, or - to read one image from stdin")
    parser.add_argument("--output-dir", default=".", help="Folder for the encoded variant files")
    parser.add_argument("--json-out", help="Write descriptors to this file instead of stdout")
    parser.add_argument("--base-url", help="Prefix for srcset entries (default: bare file names)")
    for flag in CONFIG_FLAGS:
        parser.add_argument(f"--{flag.replace('_', '-')}", dest=flag, type=int)
    parser.add_argument(
        "--variant-width-ladder",
        type=lambda s: tuple(int(w) for w in s.split(",") if w.strip()),
        help="Comma separated widths, largest first (e.g. 2000,1000)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    overrides = {flag: getattr(args, flag) for flag in CONFIG_FLAGS if getattr(args, flag) is not None}
    if args.variant_width_ladder is not None:
        overrides["variant_width_ladder"] = args.variant_width_ladder
    return Settings().pipeline_config(**overrides)


def write_outputs(result: PipelineResult, output_dir: Path, out: TextIO) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    for f in result.files:
        (output_dir / f.name).write_bytes(f.data)
    out.write(result.descriptor.to_json() + "\n")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=Settings().log_level.upper(), format="%(message)s", stream=sys.stderr)

    try:
        config = config_from_args(args)
    except ValueError as e:
        print(f"error: invalid configuration: {e}", file=sys.stderr)
        return 2
    namer = url_namer(args.base_url) if args.base_url else object_name
    output_dir = Path(args.output_dir)
    out: TextIO = sys.stdout

    try:
        if args.json_out:
            out = open(args.json_out, "w", encoding="utf-8")
        for path in args.paths:
            if path == "-":
                data, name = sys.stdin.buffer.read(), "stdin"
            else:
                data, name = Path(path).read_bytes(), path
            result = run_pipeline(data, name, config, namer=namer)
            write_outputs(result, output_dir, out)
    except PhotorollError as e:
        print(f"error: {type(e).__name__}: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"error: {type(e).__name__}: {e}", file=sys.stderr)
        return 2
    finally:
        if out is not sys.stdout:
            out.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
