#!/usr/bin/env python
import binascii
import logging
import os
import shutil
import sys
from collections import OrderedDict

import peekread.version as version
from peekread.bufreader import BufPeekReader
from peekread.peeker import PeekError, PeekRead, read_up_to
from peekread.seekreader import SeekPeekReader

__version__ = "peekread v%d.%d.%d (Python %s)" % (
    version.major,
    version.minor,
    version.micro,
    ".".join([str(x) for x in sys.version_info[:3]]),
)

log = logging.getLogger(__name__)

DEFAULT_PEEK_SIZE = 16
CONFIG_PATH = "~/.peekread/peekread.cfg"

# Checked in order, first match wins.
DEFAULT_SIGNATURES = OrderedDict(
    [
        ("cart", b"CART"),
        ("pdf", b"%PDF-"),
        ("png", b"\x89PNG\r\n\x1a\n"),
        ("gif", b"GIF8"),
        ("jpeg", b"\xff\xd8\xff"),
        ("zip", b"PK\x03\x04"),
        ("gzip", b"\x1f\x8b"),
        ("bzip2", b"BZh"),
        ("xz", b"\xfd7zXZ\x00"),
        ("elf", b"\x7fELF"),
        ("html", b"<!DOCTYPE"),
        ("xml", b"<?xml"),
    ]
)


def wrap(fileobj):
    """Return a peekable wrapper suited to what `fileobj` can do."""
    if isinstance(fileobj, PeekRead):
        return fileobj
    seekable = getattr(fileobj, "seekable", None)
    if seekable is not None and seekable():
        return SeekPeekReader(fileobj)
    return BufPeekReader(fileobj)


def sniff(stream, signatures=DEFAULT_SIGNATURES):
    for name, magic in signatures.items():
        if stream.starts_with(magic):
            log.debug("Stream starts with the %s signature", name)
            return name
    return None


def _describe(stream, size, magic, signatures):
    if magic is not None:
        return "match" if stream.starts_with(magic) else "no match"
    fmt = sniff(stream, signatures) or "unknown"
    with stream.peek() as cursor:
        head = read_up_to(cursor, size)
    return "%s %s" % (fmt, binascii.hexlify(head).decode())


def main():
    import configparser

    from argparse import ArgumentParser

    signatures = OrderedDict(DEFAULT_SIGNATURES)
    size = DEFAULT_PEEK_SIZE
    passthrough = False

    config = configparser.ConfigParser()
    config.read([os.path.expanduser(CONFIG_PATH)])
    for section in config.sections():
        if section == "global":
            if "size" in config.options("global"):
                size = config.getint("global", "size")

            if "passthrough" in config.options("global"):
                passthrough = config.getboolean("global", "passthrough")
        else:
            for option in config.options(section):
                signatures[option] = binascii.unhexlify(config.get(section, option))

    parser = ArgumentParser(
        description="Show what a stream starts with without consuming it."
    )
    parser.add_argument("files", metavar="file", nargs="*")
    parser.add_argument("-v", "--version", action="version", version=__version__)
    parser.add_argument(
        "-n",
        "--size",
        type=int,
        dest="size",
        default=size,
        help="Number of leading bytes to display",
    )
    parser.add_argument(
        "-s",
        "--signature",
        dest="signature",
        help="Only report whether the input starts with this hex encoded magic",
    )
    parser.add_argument(
        "-p",
        "--passthrough",
        action="store_true",
        dest="passthrough",
        default=passthrough,
        help="Copy the complete input to the output after peeking",
    )
    parser.add_argument("-o", "--outfile", dest="outfile", help="Set output file")
    parser.add_argument(
        "--debug",
        action="store_true",
        dest="debug",
        default=False,
        help="Log peek activity to stderr",
    )

    options = parser.parse_args()
    args = options.files

    if options.debug:
        logging.basicConfig(level=logging.DEBUG)

    stream_mode = False
    if not args:
        if not sys.stdin.isatty():
            stream_mode = True
        else:
            parser.print_help()
            sys.exit()

    magic = None
    if options.signature:
        try:
            magic = binascii.unhexlify(options.signature)
        except (binascii.Error, ValueError):
            print("ERR: Signature '%s' is not valid hex" % options.signature)
            sys.exit(2)

    if options.passthrough and not options.outfile:
        report = sys.stderr
    else:
        report = sys.stdout

    if options.outfile and len(args) > 1:
        print("ERR: Cannot set 'outfile' option when peeking multiple files")
        sys.exit(2)

    if stream_mode:
        input_stream = BufPeekReader(sys.stdin.buffer)
        print(
            "<stdin>: %s" % _describe(input_stream, options.size, magic, signatures),
            file=report,
        )
        if options.passthrough:
            _copy_out(input_stream, options.outfile)
        return

    for cur_file in args:
        if not os.path.exists(cur_file):
            print("ERR: file '%s' does not exist" % cur_file)
            if len(args) > 1:
                continue
            else:
                sys.exit(4)

        try:
            with wrap(open(cur_file, "rb")) as input_stream:
                print(
                    "%s: %s"
                    % (cur_file, _describe(input_stream, options.size, magic, signatures)),
                    file=report,
                )
                if options.passthrough:
                    _copy_out(input_stream, options.outfile)
        except (OSError, PeekError) as e:
            print("ERR: Could not peek into file '%s'. [%s]" % (cur_file, str(e)))
            if len(args) > 1:
                continue
            else:
                sys.exit(5)


def _copy_out(input_stream, output_file):
    if output_file:
        if os.path.dirname(output_file):
            os.makedirs(os.path.dirname(output_file), exist_ok=True)
        with open(output_file, "wb") as output_stream:
            shutil.copyfileobj(input_stream, output_stream)
    else:
        shutil.copyfileobj(input_stream, sys.stdout.buffer)
        sys.stdout.flush()


if __name__ == "__main__":
    main()
