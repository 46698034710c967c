"""Stock sentiment tracker entry point.

Usage:
    python run_pipeline.py                 # every symbol in config.yaml
    python run_pipeline.py AAPL MSFT       # only these symbols
    python run_pipeline.py --search apple  # symbol search
    python run_pipeline.py --health        # configured collaborators

Writes history_<SYM>.csv, news_<SYM>.json and sentiment_<SYM>.json into the
configured output directory and reports success/failure to stdout and the log.
"""

import argparse
import json
import sys

from dotenv import load_dotenv

load_dotenv()  # must precede src imports so env vars are available at module load

from src.core.config import AppConfig, load_config  # noqa: E402
from src.core.logger import logger  # noqa: E402
from src.pipeline.engine import StockSentimentEngine  # noqa: E402

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_ERROR = 1
EXIT_PARTIAL = 2


def _parse_args(argv):
    parser = argparse.ArgumentParser(description="Stock sentiment and technical-indicator tracker")
    parser.add_argument("symbols", nargs="*", help="ticker symbols (default: config stocks)")
    parser.add_argument("--config", default="config.yaml", help="path to config.yaml")
    parser.add_argument("--search", metavar="QUERY", help="search popular symbols and exit")
    parser.add_argument("--health", action="store_true", help="print collaborator status and exit")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Run the tracker. Returns 0 on success, 1 on config or run errors, 2 if any report failed."""
    args = _parse_args(argv)

    try:
        config = AppConfig.from_dict(load_config(args.config))
    except (FileNotFoundError, ValueError, TypeError) as exc:
        logger.error(f"run_pipeline: failed to load config: {exc}")
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_CONFIG

    engine = StockSentimentEngine.from_config(config)

    if args.search is not None:
        print(json.dumps(engine.search(args.search), indent=2))
        return EXIT_OK
    if args.health:
        print(json.dumps(engine.health(), indent=2))
        return EXIT_OK

    symbols = args.symbols or config.stocks
    if not symbols:
        print("ERROR: no symbols given and none configured under 'stocks'", file=sys.stderr)
        return EXIT_CONFIG

    try:
        status = engine.run(symbols)
    except Exception as exc:
        logger.error(f"run_pipeline: StockSentimentEngine raised: {exc}", exc_info=True)
        print(f"ERROR: tracker run failed: {exc}", file=sys.stderr)
        return EXIT_ERROR

    failures = 0
    for symbol, reports in status.items():
        for report, result in reports.items():
            if result == "ok":
                print(f"SUCCESS: {symbol} {report}")
            else:
                failures += 1
                print(f"FAILED:  {symbol} {report} — {result}", file=sys.stderr)

    logger.info(f"run_pipeline: completed — {len(status)} symbols, {failures} failed report(s)")
    return EXIT_PARTIAL if failures else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
