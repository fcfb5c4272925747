"""CLI entrypoint: hash files, submit pictures, run the API."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

from picture_sync.client import SubmissionClient, SubmissionError
from picture_sync.config import Settings
from picture_sync.utils.hashing import InvalidInputError, ReadError, compute_file_digest
from picture_sync.utils.logging import setup_logging


def _parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="picture-sync")
    subparsers = parser.add_subparsers(dest="command", required=True)

    hash_parser = subparsers.add_parser("hash", help="Print the content digest of a file")
    hash_parser.add_argument("path", type=Path)
    hash_parser.add_argument("--window-size", type=int, default=settings.hash_window_size)
    hash_parser.add_argument("--algorithm", default=settings.hash_algorithm)

    submit_parser = subparsers.add_parser("submit", help="Upload a picture and record its metadata")
    submit_parser.add_argument("path", type=Path)
    submit_parser.add_argument("--uid", required=True)
    submit_parser.add_argument("--name", required=True)
    submit_parser.add_argument("--order-id", required=True)
    submit_parser.add_argument("--desc", default="")
    submit_parser.add_argument("--api-url", default=settings.api_url)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=settings.api_host)
    serve_parser.add_argument("--port", type=int, default=settings.api_port)

    return parser


async def _submit(args: argparse.Namespace, settings: Settings) -> int:
    async with SubmissionClient(
        args.api_url,
        window_size=settings.hash_window_size,
        algorithm=settings.hash_algorithm,
    ) as client:
        result = await client.submit(
            args.path, uid=args.uid, name=args.name, order_id=args.order_id, desc=args.desc,
        )
    print(result.url)
    return 0


def _serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from picture_sync.api.app import create_app

    uvicorn.run(create_app(settings), host=args.host, port=args.port)
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    settings = Settings()
    setup_logging(settings.log_level)

    args = _parser(settings).parse_args(argv)

    try:
        if args.command == "hash":
            digest = asyncio.run(
                compute_file_digest(args.path, args.window_size, algorithm=args.algorithm)
            )
            print(digest)
            return 0
        if args.command == "submit":
            return asyncio.run(_submit(args, settings))
        if args.command == "serve":
            return _serve(args, settings)
    except (InvalidInputError, ReadError, SubmissionError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
