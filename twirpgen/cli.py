"""CLI entrypoint for the protoc-gen-twirp plugin."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from google.protobuf.message import DecodeError

from . import GENERATOR_VERSION
from .config import ConfigError, load_config
from .generator import EmissionError, ServiceGenerator
from .loader import SchemaError, SchemaLoader
from .logging import configure_logging, get_logger
from .plugin import build_response, read_request, request_from_descriptor_set, write_files
from .postproc.gofmt import FormatterNotFound


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="protoc-gen-twirp",
        description=(
            "Generate Twirp clients and servers for Go. Run by protoc with a "
            "CodeGeneratorRequest on stdin, or directly against a descriptor set."
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {GENERATOR_VERSION}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write debug logs to this file.",
    )
    parser.add_argument(
        "--descriptor-set",
        type=Path,
        help="Read a FileDescriptorSet instead of a CodeGeneratorRequest on stdin.",
    )
    parser.add_argument(
        "--file",
        action="append",
        dest="files",
        default=None,
        help="Proto file to generate from the descriptor set (repeatable).",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=Path("."),
        help="Output directory when using --descriptor-set (defaults to current directory).",
    )
    parser.add_argument(
        "--param",
        default="",
        help="Plugin parameter string, e.g. 'validate_enable=true,paths=source_relative'.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Plugin entrypoint."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    logger = get_logger("cli")

    try:
        if args.descriptor_set is not None:
            request = request_from_descriptor_set(args.descriptor_set, args.files, args.param)
        else:
            request = read_request(sys.stdin.buffer)
    except OSError as exc:
        parser.exit(1, f"protoc-gen-twirp: {exc}\n")
    except DecodeError as exc:
        parser.exit(1, f"protoc-gen-twirp: malformed descriptor input: {exc}\n")

    try:
        config = load_config(request.parameter, base_dir=Path.cwd())
        if config.verbose and not args.verbose:
            configure_logging(verbose=True, log_file=args.log_file)
        schemas = SchemaLoader(config).load_request(request)
        files = ServiceGenerator(config).generate(schemas)
    except ConfigError as exc:
        parser.exit(1, f"protoc-gen-twirp: invalid configuration: {exc}\n")
    except SchemaError as exc:
        parser.exit(1, f"protoc-gen-twirp: {exc}\n")
    except FormatterNotFound as exc:
        parser.exit(1, f"protoc-gen-twirp: {exc}\n")
    except EmissionError as exc:
        parser.exit(1, f"protoc-gen-twirp: {exc}\n")

    if args.descriptor_set is not None:
        for path in write_files(files, args.out):
            logger.info("Wrote %s", path)
        return

    sys.stdout.buffer.write(build_response(files).SerializeToString())
    sys.stdout.buffer.flush()


if __name__ == "__main__":
    main(sys.argv[1:])
