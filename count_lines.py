#!/usr/bin/env python3
"""
Command line entry point: count lines of code, extra lines and keywords
of every supported file under a directory.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from line_count_pipeline import count_lines
from pipeline.stages.formatting import ReportFormatter, format_faulty_files
from pipeline_configs import DEFAULT_EXCLUDE_PATTERNS, PipelineConfig
from pipeline_errors import (
    AllFilesFaultyError, CatalogError, ConfigurationError, ParseFilesError
)

logger = logging.getLogger(__name__)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Count lines of code and keywords of a codebase",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  count-lines                          # Count the current directory
  count-lines -t 8 /path               # Use eight worker threads
  count-lines -e py rs /path           # Only Python and Rust files
  count-lines --json --progress .      # JSON report with a progress bar
  count-lines --catalog langs.json .   # Extra grammars from a JSON table
        """
    )

    parser.add_argument('path', nargs='?', default='.',
                        help='Directory to analyze (default: current directory)')
    parser.add_argument('-t', '--threads', type=int, default=None,
                        help='Number of worker threads (default: CPU count, max 32)')
    parser.add_argument('-e', '--extensions', nargs='+', default=[], metavar='EXT',
                        help='Only count these extensions (default: every known extension)')
    parser.add_argument('--exclude', nargs='+', default=None, metavar='PATTERN',
                        help='Glob patterns of names to skip (replaces the defaults)')
    parser.add_argument('--include-hidden', action='store_true',
                        help='Walk hidden files and directories')
    parser.add_argument('--follow-symlinks', action='store_true',
                        help='Descend into symlinked directories')
    parser.add_argument('--show-faulty-files', action='store_true',
                        help='Print the error of every file that could not be parsed')
    parser.add_argument('--catalog', type=Path, default=None,
                        help='JSON file with additional extension grammars')
    parser.add_argument('--json', action='store_const', dest='format', const='json',
                        help='Structured output for programmatic processing')
    parser.add_argument('--progress', action='store_true',
                        help='Show a progress bar while parsing')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Logging verbosity (default: WARNING)')

    parser.set_defaults(format='text')

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> PipelineConfig:
    return PipelineConfig(
        root_path=Path(args.path).resolve(),
        exclude_patterns=list(DEFAULT_EXCLUDE_PATTERNS) if args.exclude is None else args.exclude,
        include_hidden=args.include_hidden,
        follow_symlinks=args.follow_symlinks,
        extensions_of_interest=args.extensions,
        threads=args.threads,
        catalog_file=args.catalog,
        output_format=args.format,
        show_faulty_files=args.show_faulty_files,
        show_progress=args.progress,
        log_level=args.log_level,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        config = build_config(args)
        formatter = ReportFormatter(config.output_format, show_faulty_files=config.show_faulty_files)
        count_lines(config, formatter=formatter, stream=sys.stdout)
    except AllFilesFaultyError as e:
        print(format_faulty_files(e.faulty_files, args.show_faulty_files))
        print(e.formatted(), file=sys.stderr)
        return 1
    except ParseFilesError as e:
        print(e.formatted(), file=sys.stderr)
        return 1
    except (ConfigurationError, CatalogError) as e:
        logger.debug(f"Run aborted: {e.log_context()}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n\nInterrupted by user", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
