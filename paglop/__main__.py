#!/usr/bin/env python3

"""An IRC bot that learns to talk from its channels and babbles back."""

from __future__ import annotations

import argparse
import logging
import sys

from paglop import __version__
from paglop.core import Core
from paglop.exceptions import ConfigError, CorpusLoadError


def parse_args(argv: list[str] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="paglop", description="Markov chain powered IRC chatter bot.")
    parser.add_argument(
        "-c", "--config", metavar="FILE",
        help="Configuration file; defaults to paglop.toml in the user config directory.")
    parser.add_argument(
        "-d", "--data-dir", metavar="DIR",
        help="Directory holding the .txt corpus files. Overrides Core.DataDir.")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: list[str] = None) -> int:
    args = parse_args(argv)
    logger = logging.getLogger("Paglop")
    try:
        bot = Core(args.config, args.data_dir, verbose=args.verbose)
    except ConfigError as ex:
        logger.critical(f"Config error: {ex}")
        return 1
    except CorpusLoadError as ex:
        logger.critical(f"Could not initialize Markov chain: {ex}")
        return 1
    return bot.run()


if __name__ == "__main__":
    sys.exit(main())
