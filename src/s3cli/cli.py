import argparse
import logging
import os
import sys
from logging.config import dictConfig
from pathlib import Path
from typing import List, Optional

from . import __version__
from .client import S3Blobstore
from .config import load_settings
from .errors import S3CliError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_NOT_EXISTS = 3

LOG_LEVEL_ENV = "S3CLI_LOG_LEVEL"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]
STATUS_LOGGER = "s3cli.status"


def setup_logging(level: str = "INFO") -> None:
    # Status lines go to stderr; stdout stays free for callers.
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {
                    "format": "%(asctime)s %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                    "stream": "ext://sys.stderr",
                },
            },
            "root": {
                "level": level.upper(),
                "handlers": ["console"],
            },
            "loggers": {
                "boto3": {"level": "WARNING"},
                "botocore": {"level": "WARNING"},
                "s3transfer": {"level": "WARNING"},
                "urllib3": {"level": "WARNING"},
                STATUS_LOGGER: {
                    "level": "INFO",
                    "handlers": ["console"],
                    "propagate": False,
                },
            },
        }
    )


def default_log_level() -> str:
    level = os.getenv(LOG_LEVEL_ENV, "INFO").strip().upper()
    return level if level in LOG_LEVELS else "INFO"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="s3cli",
        description="Fetch, store, delete and check blobs in an S3-compatible bucket described by a JSON config file.",
    )
    p.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")
    p.add_argument(
        "--log-level",
        default=default_log_level(),
        choices=LOG_LEVELS,
        type=str.upper,
        help=f"Logging verbosity on stderr (env {LOG_LEVEL_ENV}, default INFO)",
    )
    p.add_argument("config", type=Path, help="Path to the JSON blobstore configuration")

    commands = p.add_subparsers(dest="command", metavar="command", required=True)

    get = commands.add_parser("get", help="Download a blob to a local file (overwrites it)")
    get.add_argument("src", help="Blob key in the bucket")
    get.add_argument("dest", type=Path, help="Local destination file")

    put = commands.add_parser("put", help="Upload a local file as a blob")
    put.add_argument("src", type=Path, help="Local source file")
    put.add_argument("dest", help="Blob key in the bucket")

    delete = commands.add_parser("delete", help="Delete a blob (absent blobs are not an error)")
    delete.add_argument("dest", help="Blob key in the bucket")

    exists = commands.add_parser("exists", help="Check whether a blob exists (exit 3 if not)")
    exists.add_argument("dest", help="Blob key in the bucket")

    return p.parse_args(argv)


def run(blobstore: S3Blobstore, args: argparse.Namespace) -> int:
    if args.command == "get":
        try:
            out = args.dest.open("wb")
        except OSError as exc:
            print(f"Cannot open destination file {args.dest}: {exc}", file=sys.stderr)
            return EXIT_USAGE
        with out:
            blobstore.get(args.src, out)
        return EXIT_OK

    if args.command == "put":
        try:
            src = args.src.open("rb")
        except OSError as exc:
            print(f"Cannot open source file {args.src}: {exc}", file=sys.stderr)
            return EXIT_USAGE
        with src:
            blobstore.put(src, args.dest)
        return EXIT_OK

    if args.command == "delete":
        blobstore.delete(args.dest)
        return EXIT_OK

    if args.command == "exists":
        return EXIT_OK if blobstore.exists(args.dest) else EXIT_NOT_EXISTS

    raise ValueError(f"unknown command {args.command!r}")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        settings = load_settings(args.config)
    except S3CliError as exc:
        print(f"Invalid configuration {args.config}: {exc}", file=sys.stderr)
        return EXIT_ERROR

    logger.debug(
        "Using bucket %s (region=%r endpoint=%s credentials_source=%s)",
        settings.bucket_name,
        settings.effective_region,
        settings.endpoint_url or "<sdk default>",
        settings.credentials_source.value,
    )

    blobstore = S3Blobstore.from_settings(settings)
    try:
        return run(blobstore, args)
    except S3CliError as exc:
        print(f"performing operation {args.command}: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
