"""The ordtool command line."""

from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from .byte_size import ByteSize
from .commands import epochs, height_range, name_to_ordinal, supply, traits
from .index import Index
from .keys import PrivateKey
from .nft import Nft
from .options import DEFAULT_INDEX_SIZE, Options
from .ordinal import Height, Ordinal
from .sat_point import OutPoint
from .server import serve

_LOG_LEVEL_VARIABLE = "ORDTOOL_LOG"
_MAX_INTERRUPTS = 5


class CliError(Exception):
    """A command failed."""


@contextmanager
def _interrupts(index: Index) -> Iterator[None]:
    """Turn Ctrl-C into a request to stop indexing cleanly."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    received = 0

    def handle(signum, frame) -> None:
        nonlocal received
        received += 1
        index.interrupt()
        if received > _MAX_INTERRUPTS:
            raise KeyboardInterrupt

    previous = signal.signal(signal.SIGINT, handle)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


@contextmanager
def _indexed(options: Options) -> Iterator[Index]:
    with Index.open(options) as index:
        with _interrupts(index):
            index.index_ranges()
        yield index


def _print_lines(lines) -> None:
    for line in lines:
        print(line)


def _run_epochs(args, options) -> None:
    _print_lines(epochs())


def _run_find(args, options) -> None:
    with _indexed(options) as index:
        satpoint = index.find(args.ordinal)
    if satpoint is None:
        raise CliError("Ordinal has not been mined as of index height")
    print(satpoint)


def _run_generate_private_key(args, options) -> None:
    print(PrivateKey.generate().to_wif())


def _run_index(args, options) -> None:
    with _indexed(options):
        pass


def _run_info(args, options) -> None:
    with Index.open(options) as index:
        _print_lines(index.info_lines())


def _run_list(args, options) -> None:
    with _indexed(options) as index:
        ranges = index.list(args.outpoint)
    if ranges is None:
        raise CliError("Output not found")
    _print_lines(f"[{start},{end})" for start, end in ranges)


def _run_mint(args, options) -> None:
    try:
        data = args.data_path.read_bytes()
    except OSError as error:
        raise CliError(f"Failed to read data from {args.data_path}") from error
    nft = Nft.mint(args.ordinal, data, PrivateKey.from_wif(args.signing_key))
    try:
        args.output_path.write_bytes(nft.encode())
    except OSError as error:
        raise CliError(f"Failed to write NFT to {args.output_path}") from error


def _run_name(args, options) -> None:
    print(name_to_ordinal(args.name))


def _run_range(args, options) -> None:
    start, end = height_range(args.height, args.name)
    print(f"[{start},{end})")


def _run_server(args, options) -> None:
    serve(options, args.address, args.port)


def _run_supply(args, options) -> None:
    _print_lines(f"{key}: {value}" for key, value in supply().items())


def _run_traits(args, options) -> None:
    _print_lines(traits(args.ordinal))


def _run_verify(args, options) -> None:
    try:
        encoded = args.input_path.read_bytes()
    except OSError as error:
        raise CliError(f"Failed to read NFT from `{args.input_path}`") from error
    try:
        nft = Nft.verify(encoded)
    except ValueError as error:
        raise CliError(f"Failed to verify NFT at `{args.input_path}`") from error

    print("NFT is valid!", file=sys.stderr)
    print(f"Ordinal: {nft.ordinal()}", file=sys.stderr)
    print(f"Issuer: {nft.issuer().hex()}", file=sys.stderr)
    print(f"Data hash: {nft.data_hash().hex()}", file=sys.stderr)

    sys.stdout.flush()
    sys.stdout.buffer.write(nft.data())
    sys.stdout.buffer.flush()


def _port(text: str) -> int:
    port = int(text)
    if not 0 <= port <= 0xFFFF:
        raise ValueError(f"port out of range: {text}")
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ordtool")
    parser.add_argument(
        "--index-size", type=ByteSize.parse, default=ByteSize.parse(DEFAULT_INDEX_SIZE)
    )
    parser.add_argument("--cookie-file", type=Path)
    parser.add_argument("--rpc-url")
    subcommands = parser.add_subparsers(dest="command", required=True)

    subcommands.add_parser("epochs").set_defaults(handler=_run_epochs)

    find = subcommands.add_parser("find")
    find.add_argument("ordinal", type=Ordinal)
    find.set_defaults(handler=_run_find)

    subcommands.add_parser("generate-private-key").set_defaults(
        handler=_run_generate_private_key
    )
    subcommands.add_parser("index").set_defaults(handler=_run_index)
    subcommands.add_parser("info").set_defaults(handler=_run_info)

    listing = subcommands.add_parser("list")
    listing.add_argument("outpoint", type=OutPoint.parse)
    listing.set_defaults(handler=_run_list)

    mint = subcommands.add_parser("mint")
    mint.add_argument("--data-path", type=Path, required=True,
                      help="Read NFT contents from DATA_PATH")
    mint.add_argument("--ordinal", type=Ordinal, required=True,
                      help="Assign NFT to ORDINAL")
    mint.add_argument("--signing-key", required=True,
                      help="Sign NFT with WIF-formatted SIGNING_KEY")
    mint.add_argument("--output-path", type=Path, required=True,
                      help="Write signed NFT metadata to OUTPUT_PATH")
    mint.set_defaults(handler=_run_mint)

    name = subcommands.add_parser("name")
    name.add_argument("name")
    name.set_defaults(handler=_run_name)

    height_range_parser = subcommands.add_parser("range")
    height_range_parser.add_argument("--name", action="store_true")
    height_range_parser.add_argument("height", type=Height)
    height_range_parser.set_defaults(handler=_run_range)

    server = subcommands.add_parser("server")
    server.add_argument("--address", default="0.0.0.0")
    server.add_argument("--port", type=_port, default=80)
    server.set_defaults(handler=_run_server)

    subcommands.add_parser("supply").set_defaults(handler=_run_supply)

    trait_parser = subcommands.add_parser("traits")
    trait_parser.add_argument("ordinal", type=Ordinal)
    trait_parser.set_defaults(handler=_run_traits)

    verify = subcommands.add_parser("verify")
    verify.add_argument("--input-path", type=Path, required=True,
                        help="Read NFT from INPUT_PATH")
    verify.set_defaults(handler=_run_verify)

    return parser


def _report(error: BaseException) -> None:
    print(f"error: {error}", file=sys.stderr)
    cause = error.__cause__
    while cause is not None:
        print(f"because: {cause}", file=sys.stderr)
        cause = cause.__cause__


def main(argv: list[str] | None = None) -> int:
    """Run a command; return the process exit status."""
    level = os.environ.get(_LOG_LEVEL_VARIABLE)
    if level:
        logging.basicConfig(level=level.upper())

    args = build_parser().parse_args(argv)
    options = Options(
        index_size=args.index_size,
        cookie_file=args.cookie_file,
        rpc_url=args.rpc_url,
    )
    try:
        args.handler(args, options)
    except KeyboardInterrupt:
        return 1
    except Exception as error:
        _report(error)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())