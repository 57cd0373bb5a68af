import argparse
import logging
import sys
from pathlib import Path

from .core.config import get_settings


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )
    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def compile_file(input_path: str, output_path: str | None, escape_quotes: bool = False) -> int:
    """Compile a documentation file to Mermaid.

    Args:
        input_path: Path to read, or "-" for stdin
        output_path: Path to write, or None for stdout
        escape_quotes: Escape quotes in labels

    Returns:
        Process exit code
    """
    from .core.flowchart import build_flowchart

    try:
        if input_path == "-":
            documentation = sys.stdin.read()
        else:
            documentation = Path(input_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Cannot read {input_path}: {e}", file=sys.stderr)
        return 1

    flowchart = build_flowchart(documentation, escape_quotes=escape_quotes)
    for line in flowchart.skipped_lines:
        logger.warning(f"Skipped unrecognized line: {line}")

    if output_path:
        try:
            Path(output_path).write_text(flowchart.code, encoding="utf-8")
        except OSError as e:
            print(f"Cannot write {output_path}: {e}", file=sys.stderr)
            return 1
        logger.info(
            f"Wrote {len(flowchart.nodes)} nodes and {len(flowchart.edges)} edges to {output_path}"
        )
    else:
        sys.stdout.write(flowchart.code)
    return 0


def main(argv: list[str] | None = None):
    """Main entry point for FlowDoc."""
    settings = get_settings()

    # Parse arguments
    parser = argparse.ArgumentParser(description="FlowDoc - Documentation to Mermaid flowcharts")
    parser.add_argument(
        "--host",
        type=str,
        default=settings.host,
        help="Host interface for the API server"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help="Port for the API server"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Run in debug mode (auto-reload)"
    )
    parser.add_argument(
        "--input",
        type=str,
        default=None,
        help="Compile this documentation file ('-' for stdin) instead of serving"
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write Mermaid output here instead of stdout (with --input)"
    )
    parser.add_argument(
        "--escape-quotes",
        action="store_true",
        help="Escape double quotes in labels (with --input)"
    )
    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.log_level)

    if args.input:
        sys.exit(compile_file(args.input, args.output, escape_quotes=args.escape_quotes))

    import uvicorn

    logger.info(f"Starting FastAPI server on http://{args.host}:{args.port}")
    print(f"\n  FlowDoc is running at: http://localhost:{args.port}")
    print(f"  API docs at: http://localhost:{args.port}/docs\n")

    # Reload needs an import string; the factory rebuilds the app per worker
    if args.debug:
        uvicorn.run(
            "flowdoc.api.app:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            log_level=args.log_level.lower(),
            reload=True,
        )
        return

    from .api.app import create_app
    app = create_app(settings)

    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
