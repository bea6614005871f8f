from __future__ import annotations
"""
netstats launcher
- central logging
- builds the netstats app
- serves it with uvicorn
"""
import argparse
import os
import sys

import uvicorn

# Make `modules` importable when the script is run directly
ROOT = os.path.dirname(os.path.abspath(__file__))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve live network throughput, latency and packet loss.")
    parser.add_argument("--config", help="Path to a netstats config.yml (overrides NETSTATS_CONFIG)")
    parser.add_argument("--host", help="Bind address")
    parser.add_argument("--port", type=int, help="Bind port")
    parser.add_argument("--log-level", help="Console log level, e.g. DEBUG")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    from modules.logwrapper import init_logging
    init_logging({"console_level": args.log_level.upper() if args.log_level else None})

    from modules.netstats.config_loader import load_config
    from modules.netstats.xNetStatsService import create_app

    cfg = load_config(args.config)
    app = create_app(args.config)

    host = args.host or str(cfg["server"]["host"])
    port = args.port or int(cfg["server"]["port"])
    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
