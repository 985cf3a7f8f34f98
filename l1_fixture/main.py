#!/usr/bin/env python3
import argparse
import json
import logging
import signal
import sys
from contextlib import contextmanager

from .builder import FixtureBuilder
from .core.ownership import fix_ownership
from .utils.config_manager import load_config
from .utils.exceptions import BuildInterrupted, FixtureError
from .utils.logging import setup_logging

LOG = logging.getLogger(__name__)


def _raise_interrupt(signum, frame):
    raise BuildInterrupted(signum, signal.Signals(signum).name)


@contextmanager
def interrupts_as_exceptions(signals=(signal.SIGTERM, signal.SIGHUP)):
    """Turn termination signals into BuildInterrupted so cleanup handlers run"""
    previous = {}
    for signum in signals:
        previous[signum] = signal.signal(signum, _raise_interrupt)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build a development L1 node image preloaded with deployed contracts. "
                    "Run from the root of the consuming project."
    )
    parser.add_argument("rpc_port", nargs="?", type=int, default=None,
                        help="Host port bound to the node RPC (default: 8545)")
    parser.add_argument("--config", default=None,
                        help="Path to a YAML configuration file")
    parser.add_argument("--skip-chown", action="store_true",
                        help="Leave the data directory owned by the container user")
    parser.add_argument("--chown-only", action="store_true",
                        help="Only restore ownership of an existing data directory")
    parser.add_argument("--summary-file", default=None,
                        help="Write the build result as JSON to this path")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level")
    parser.add_argument("--log-file", default=None,
                        help="Path to log file")
    return parser


def run(argv=None) -> int:
    """Parse arguments, run the requested step and return the exit status"""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    try:
        config = load_config(
            args.config,
            rpc_port=args.rpc_port,
            fix_ownership=False if args.skip_chown else None,
        )

        if args.chown_only:
            fix_ownership(config.data_dir)
            return 0

        with interrupts_as_exceptions():
            result = FixtureBuilder(config).build()

    except BuildInterrupted as e:
        LOG.error(f"{e}; node container removed")
        return 128 + e.signum
    except KeyboardInterrupt:
        LOG.error("Build interrupted by SIGINT; node container removed")
        return 128 + signal.SIGINT
    except FixtureError as e:
        LOG.error(f"Fixture build failed: {e}")
        if e.details:
            LOG.debug(f"Error details: {json.dumps(e.to_dict(), indent=2, default=str)}")
        return 1

    if args.summary_file:
        with open(args.summary_file, 'w') as f:
            json.dump(result.to_dict(), f, indent=2)
        LOG.info(f"Build summary saved to: {args.summary_file}")

    LOG.info(f"Image:    {result.image_tag} ({result.image_id})")
    LOG.info(f"Env file: {result.env_file}")
    LOG.info(f"Data dir: {result.data_dir}")
    return 0


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
