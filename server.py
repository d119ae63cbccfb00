"""CRM dashboard API server.

Usage:
  python server.py --port 8000
  python server.py --reload          # development
"""
import argparse
import logging

import uvicorn

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CRM Dashboard API")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    return parser


if __name__ == "__main__":
    args = _build_arg_parser().parse_args()
    uvicorn.run("api.app:app", host=args.host, port=args.port, reload=args.reload)
