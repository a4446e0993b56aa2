#!/usr/bin/env python3
"""
Command line entry point.

    jarcount INPUT OUTPUT EXECUTABLE PARAM1 PARAM2 [-skip FILE]... [-D key=value]...

Exit status is 0 on success, 1 when the external program cannot be started
or a task fails, and 2 on bad arguments or configuration.
"""

import sys
import logging
import argparse
from typing import Dict, List, Optional

from jarcount.common.config import CASE_SENSITIVE_KEY, SKIP_PATTERNS_KEY, JobConfig
from jarcount.common.errors import ConfigurationError, JarCountError, ProcessStartError
from jarcount.coordinator.job_runner import LocalJobRunner

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='jarcount',
        description='Count words in a text file, running an external program for every line'
    )
    parser.add_argument('input', help='Input text file')
    parser.add_argument('output', help='Output directory (must not exist or be empty)')
    parser.add_argument('executable', help='Program or .jar run once per input line')
    parser.add_argument('param1', help='First fixed parameter passed to the program')
    parser.add_argument('param2', help='Second fixed parameter passed to the program')
    parser.add_argument('-skip', '--skip', dest='skip_files', action='append', default=[],
                        metavar='FILE', help='Skip-pattern file (repeatable)')
    parser.add_argument('-D', dest='properties', action='append', default=[],
                        metavar='KEY=VALUE', help='Job property, e.g. -D wordcount.case.sensitive=false')
    parser.add_argument('--case-insensitive', action='store_true',
                        help=f'Shorthand for -D {CASE_SENSITIVE_KEY}=false')
    parser.add_argument('--metrics-file', help='Write job metrics as JSON to this file')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def parse_properties(pairs: List[str]) -> Dict[str, str]:
    """Turn ['k=v', ...] into a dict"""
    properties = {}
    for pair in pairs:
        key, sep, value = pair.partition('=')
        if not sep or not key.strip():
            raise ConfigurationError(f"Expected -D key=value, got '{pair}'")
        properties[key.strip()] = value.strip()
    return properties


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        properties = parse_properties(args.properties)
        if args.case_insensitive:
            properties[CASE_SENSITIVE_KEY] = 'false'
        if args.skip_files:
            properties.setdefault(SKIP_PATTERNS_KEY, 'true')

        config = JobConfig.from_properties(
            input_path=args.input,
            output_path=args.output,
            executable=args.executable,
            params=(args.param1, args.param2),
            skip_files=args.skip_files,
            properties=properties,
        )
        metrics = LocalJobRunner(config).run()

    except ConfigurationError as e:
        logger.error(f"Invalid job configuration: {e}")
        return EXIT_USAGE
    except ProcessStartError as e:
        logger.error(f"Aborting job, external program could not be started: {e}")
        return EXIT_FAILURE
    except JarCountError as e:
        logger.error(f"Job failed: {e}")
        return EXIT_FAILURE

    if args.metrics_file:
        metrics.save_to_file(args.metrics_file)
        logger.info(f"Metrics written to {args.metrics_file}")

    for name, value in sorted(metrics.counters.items()):
        logger.info(f"Counter {name}={value}")
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
