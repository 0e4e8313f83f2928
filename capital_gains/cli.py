#!/usr/bin/env python3
"""
Capital gains tax calculator command line.

Reads one JSON list of operations per line from stdin or a file and writes
one JSON line per batch: the taxes for each operation, or an error object.
Every line is an independent batch.

Usage:
    capital-gains [--file FILE] [--config CONFIG] [--audit AUDIT] [--verbose]

Examples:
    # Process from stdin
    cat operations.json | capital-gains

    # Process from a file with custom tax settings
    capital-gains --file operations.json --config config/settings.yaml

    # Export the per-operation audit trail
    capital-gains --file operations.json --audit audit.csv
"""

import argparse
import json
import logging
import sys
from typing import IO, Iterable, Iterator, List, Optional, Tuple

import yaml

from capital_gains import __version__
from capital_gains.batch_processor import BatchProcessor, BatchResult, Done
from capital_gains.config import load_settings
from capital_gains.tax_calculator import TaxCalculator

logger = logging.getLogger(__name__)

INVALID_JSON_MESSAGE = "Invalid JSON format"


def setup_logging(level=logging.WARNING):
    """Set up logging configuration. Results use stdout, so logs go to stderr."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog='capital-gains',
        description='Calculate capital gains tax for stock operations according to Brazilian rules',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  cat operations.json | capital-gains
  capital-gains --file operations.json
  capital-gains --file operations.json --config config/settings.yaml --audit audit.csv
        """
    )

    parser.add_argument(
        '-f', '--file',
        type=str,
        help='Input file containing operations, one JSON list per line (default: stdin)'
    )

    parser.add_argument(
        '-c', '--config',
        type=str,
        help='YAML file with tax settings (default: built-in Brazilian rules)'
    )

    parser.add_argument(
        '--audit',
        type=str,
        help='Export the audit trail to this path (.csv, otherwise YAML)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Print detailed information during processing'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    return parser.parse_args(argv)


def encode_taxes(result: Done) -> str:
    """Render taxes as a JSON list with two-decimal numbers, e.g. ``[{"tax": 0.00}]``."""
    items = ['{"tax": %s}' % entry["tax"] for entry in result.to_output()]
    return "[" + ", ".join(items) + "]"


def encode_error(message: str) -> str:
    return json.dumps({"error": message})


def process_line(line: str, processor: BatchProcessor) -> Tuple[str, Optional[BatchResult]]:
    """
    Process a single input line.

    Args:
        line: One JSON list of operation records
        processor: Batch processor to use

    Returns:
        Tuple of (output line, batch result); the result is None when the
        line is not a JSON list
    """
    try:
        records = json.loads(line)
    except (json.JSONDecodeError, RecursionError):
        logger.warning(f"Invalid JSON input: {line[:80]}")
        return encode_error(INVALID_JSON_MESSAGE), None

    if not isinstance(records, list):
        logger.warning(f"Expected a JSON list of operations, got {type(records).__name__}")
        return encode_error(INVALID_JSON_MESSAGE), None

    result = processor.process(records)
    if isinstance(result, Done):
        return encode_taxes(result), result
    return encode_error(result.reason.value), result


def iter_batches(stream: Iterable[str]) -> Iterator[str]:
    """Yield non-blank, stripped lines."""
    for line in stream:
        line = line.strip()
        if line:
            yield line


def process_stream(stream: Iterable[str],
                   output: IO[str],
                   processor: BatchProcessor) -> List[BatchResult]:
    """
    Process every batch in a stream, writing one output line per batch.

    Returns:
        Batch results (lines that were not valid JSON lists are skipped)
    """
    results = []
    for line in iter_batches(stream):
        rendered, result = process_line(line, processor)
        output.write(rendered + "\n")
        output.flush()
        if result is not None:
            results.append(result)
    return results


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    args = parse_arguments(argv)
    setup_logging(logging.INFO if args.verbose else logging.WARNING)

    try:
        settings = load_settings(args.config)
    except (OSError, yaml.YAMLError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    processor = BatchProcessor(TaxCalculator(settings))

    try:
        if args.file:
            logger.info(f"Reading from file: {args.file}")
            # Undecodable bytes become U+FFFD and fail as invalid JSON on their own line
            with open(args.file, 'r', encoding='utf-8', errors='replace') as f:
                results = process_stream(f, sys.stdout, processor)
        else:
            logger.info("Reading from stdin...")
            if hasattr(sys.stdin, 'reconfigure'):
                sys.stdin.reconfigure(errors='replace')
            results = process_stream(sys.stdin, sys.stdout, processor)
    except OSError as e:
        logger.error(f"Error reading input: {e}")
        print(f"File error: {e}", file=sys.stderr)
        return 1

    if args.audit:
        from capital_gains.audit import export_audit_trail
        try:
            export_audit_trail(results, args.audit)
        except OSError as e:
            print(f"Audit export error: {e}", file=sys.stderr)
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
