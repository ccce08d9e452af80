#!/usr/bin/env python3
"""
ERP Order Ingestion - Command-Line Runner.

Parses ERP order exports and prints the canonical orders as JSON. The
runner keeps no state of its own; it wires configuration and logging and
hands each file to the ``FormatDispatcher``.

Usage:
    python main.py --input PEDIDO_138768.pdf --early-stop
    python main.py --input ./pedidos/ --validate
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List

from config import ConfigurationManager
from order_ingest import FormatDispatcher, validate_order
from order_ingest.utils.exceptions import OrderIngestError
from order_ingest.utils.logger import get_logger, setup_logger_from_config


def parse_arguments(argv: List[str] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="ERP order ingestion: spreadsheet, delimited text and PDF exports to canonical JSON",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Parse one order:
        python main.py --input PEDIDO_138768.xlsx

    Parse a long PDF, stopping at the order total:
        python main.py --input PEDIDO_138768.pdf --early-stop --max-pages 5

    Parse a directory and validate every order:
        python main.py --input ./pedidos/ --validate
        """
    )

    parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="Order file or directory containing order files"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    # Document options
    parser.add_argument(
        "--early-stop",
        action="store_true",
        default=None,
        help="Stop reading a PDF once the order total has been reached"
    )

    parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help="Maximum number of PDF pages to read (default: from configuration)"
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Attach validation results to the output"
    )

    # Logging options
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log warnings and errors"
    )

    return parser.parse_args(argv)


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Load configuration and set up logging.

    Returns:
        Initialized configuration manager.
    """
    config = ConfigurationManager(args.config)

    level = None
    if args.debug:
        level = "DEBUG"
    elif args.quiet:
        level = "WARNING"
    logger = setup_logger_from_config(level)

    logger.info(f"ERP order ingestion v{config.get('project.version', '1.0.0')}")
    logger.info(f"Input: {args.input}")

    return config


def _document_options(args: argparse.Namespace) -> Dict[str, Any]:
    options = {}
    if args.early_stop is not None:
        options['early_stop'] = args.early_stop
    if args.max_pages is not None:
        options['max_pages'] = args.max_pages
    return options


def _render(order, validate: bool) -> Dict[str, Any]:
    data = order.to_dict()
    if validate:
        data['validation'] = validate_order(order).to_dict()
    return data


def run(args: argparse.Namespace) -> List[Dict[str, Any]]:
    """
    Parse the requested input and return the JSON-ready results.

    Args:
        args: Parsed command-line arguments.

    Returns:
        One dictionary per parsed file; failures carry an ``error`` key.
    """
    dispatcher = FormatDispatcher()
    options = _document_options(args)
    input_path = Path(args.input)

    if input_path.is_dir():
        results = []
        for result in dispatcher.parse_batch(input_path, **options):
            if result.success:
                results.append(_render(result.order, args.validate))
            else:
                results.append({'source_file': result.filepath, 'error': result.error})
        return results

    order = dispatcher.parse(input_path, **options)
    return [_render(order, args.validate)]


def main(argv: List[str] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = parse_arguments(argv)

    try:
        initialize_system(args)
        logger = get_logger(__name__)

        results = run(args)
        output = results[0] if len(results) == 1 and not Path(args.input).is_dir() else results
        print(json.dumps(output, indent=2, ensure_ascii=False))

        failed = sum(1 for r in results if 'error' in r)
        logger.info(f"Done: {len(results) - failed} parsed, {failed} failed")
        return 1 if failed else 0

    except OrderIngestError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except FileNotFoundError as e:
        # Missing configuration file
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
