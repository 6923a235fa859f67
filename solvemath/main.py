"""CLI/API entrypoint for solvemath."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Optional

import uvicorn

from solvemath.api import create_app
from solvemath.api.server import build_resolver
from solvemath.client import encode_image_file
from solvemath.errors import SolveError
from solvemath.utils.config_loader import DEFAULT_CONFIG_PATH, AppConfig, load_app_config
from solvemath.utils.doc_generator import generate_config_docs
from solvemath.utils.exporters import export_solution
from solvemath.utils.logger import configure_logging


def build_parser() -> argparse.ArgumentParser:
    """Builds CLI argument parser for app entrypoints.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(description="solvemath")
    parser.add_argument("--mode", choices=["cli", "api"], default="cli")
    parser.add_argument("--problem", type=str, default="", help="Problem statement")
    parser.add_argument("--category", type=str, default="", help="Advisory category (algebra, geometry, ...)")
    parser.add_argument("--image-path", type=str, default=None, help="Local image containing the problem")
    parser.add_argument("--export", type=str, default=None, help="Export path (.md, .tex or .pdf)")
    parser.add_argument("--config", type=str, default=DEFAULT_CONFIG_PATH)
    parser.add_argument("--host", type=str, default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", type=str, default="INFO")
    parser.add_argument("--generate-docs", action="store_true", help="Generate markdown docs from YAML configs")
    parser.add_argument("--docs-output", type=str, default="docs/CONFIGURATION.md")
    return parser


def run_cli(
    config: AppConfig,
    problem: str,
    category: str = "",
    image_path: Optional[str] = None,
    export_path: Optional[str] = None,
) -> int:
    """Resolves one problem in-process and prints the solution as JSON.

    Returns:
        Process exit code; 1 when the solve fails.
    """
    try:
        image = encode_image_file(image_path, config.llm.max_image_bytes) if image_path else None
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    resolver = build_resolver(config)
    try:
        solution = asyncio.run(resolver.resolve(problem, category, image))
    except SolveError as exc:
        print("{} ({})".format(exc.message, exc.kind), file=sys.stderr)
        return 1

    print(json.dumps(solution.to_dict(), ensure_ascii=False, indent=2))
    if export_path:
        written = export_solution(problem, solution, export_path)
        print("Solution exported to {}".format(written), file=sys.stderr)
    return 0


def run_api(config: AppConfig, host: str, port: int) -> int:
    """Runs FastAPI server using Uvicorn."""
    app = create_app(config=config)
    uvicorn.run(app, host=host, port=port)
    return 0


def main() -> int:
    """Application entrypoint for CLI and API modes.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args()
    configure_logging(args.log_level)
    config = load_app_config(args.config)

    if args.generate_docs:
        output = generate_config_docs(config, args.docs_output)
        print("Configuration docs generated at {}".format(output))
        return 0

    if args.mode == "api":
        return run_api(config, args.host, args.port)
    return run_cli(
        config,
        problem=args.problem,
        category=args.category,
        image_path=args.image_path,
        export_path=args.export,
    )


if __name__ == "__main__":
    raise SystemExit(main())
