"""Entry point for the presiterm CLI."""

from __future__ import annotations

import argparse
import logging
import sys

from presiterm import __version__
from presiterm.config import LOG_LEVELS, PresenterConfig, load_config
from presiterm.errors import PresitermError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="presiterm",
        description="presiterm: present a slide deck in the terminal",
    )
    parser.add_argument("-f", "--file", required=True, help="Path to the deck file (JSON)")
    parser.add_argument("--config", default=None, help="Config file (default: ~/.presiterm/config.json)")
    parser.add_argument("--log-level", default=None, choices=list(LOG_LEVELS))
    parser.add_argument("--log-file", default=None, help="Write logs here; nothing is logged otherwise")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def setup_logging(config: PresenterConfig) -> None:
    """Log to the configured file only. The terminal belongs to the deck."""
    if config.log_file:
        logging.basicConfig(
            level=getattr(logging, config.log_level.upper()),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            filename=config.log_file,
        )
    else:
        logging.getLogger("presiterm").addHandler(logging.NullHandler())


def run(args: argparse.Namespace) -> None:
    from presiterm.deck import load_deck
    from presiterm.presenter import Presenter
    from presiterm.terminal import ProcessTerminal

    config = load_config(args.config).merged(
        {"log_level": args.log_level, "log_file": args.log_file}
    )
    setup_logging(config)

    deck = load_deck(args.file)
    Presenter(deck, ProcessTerminal(), config).run()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        run(args)
    except PresitermError as exc:
        logger.error("presentation failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
