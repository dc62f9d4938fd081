#!/usr/bin/env python3
"""
Consolidate KEP Markdown files into a single JSON file.

Walks the KEP directory, parses the metadata block of every KEP and writes
keps.json, keyed by md5("<owning-sig>:<title>"). Any KEP that fails to parse
stops the run and no output file is written.
"""

import argparse
import sys
from pathlib import Path

from kepify.config import CONFIG
from kepify.errors import EmptyCollection, InvalidProposal, KepifyError
from kepify.parser import ParseError, parse
from kepify.proposals import Proposals, write_json
from kepify.source import find_markdown_files


def configure_cli(parser: argparse.ArgumentParser):
    parser.add_argument(
        "-d", "--dir", default=CONFIG['default_dir'],
        help="root directory for the KEPs"
    )
    parser.add_argument(
        "-o", "--output", default=CONFIG['default_output'],
        help="output json file"
    )
    parser.add_argument(
        "-i", "--ignore", action="append", default=[], metavar="NAME",
        help="extra file name to skip (repeatable)"
    )
    parser.add_argument(
        "-k", "--keep-going", action="store_true",
        help="parse every KEP and report all errors before failing"
    )


def parse_files(files, keep_going: bool = False) -> Proposals:
    """
    Parse each file in order. Raises InvalidProposal on the first failure, or
    after every file has been tried when keep_going is set.
    """
    proposals = Proposals()
    failures = []
    for filename in files:
        try:
            with open(filename, 'rb') as f:
                result = parse(f)
        except OSError as e:
            raise KepifyError(f"could not open file: {e}") from e

        if isinstance(result, ParseError):
            if not keep_going:
                raise InvalidProposal([(filename, result)])
            print(f"!!!! failed to parse: {filename}")
            failures.append((filename, result))
            continue

        print(f">>>> parsed file successfully: {filename}")
        proposals.add_proposal(result)

    if failures:
        raise InvalidProposal(failures)
    return proposals


def run(dir_path, output_path, extra_ignored=(), keep_going: bool = False) -> int:
    """Find, parse and write. Returns the number of KEPs written."""
    ignored = CONFIG['ignored_filenames'] | frozenset(extra_ignored)
    files = find_markdown_files(dir_path, ignored=ignored)
    if not files:
        raise EmptyCollection(f"did not find any KEPs in {dir_path}")

    proposals = parse_files(files, keep_going=keep_going)

    for key, dupes in proposals.duplicate_identifiers().items():
        names = ', '.join(f"{p.owning_sig}:{p.title}" for p in dupes)
        print(f"Warning: {len(dupes)} KEPs share identifier {key} ({names})")

    print(f"Output file: {output_path}")
    print(f"Total KEPs: {len(proposals)}")
    write_json(Path(output_path), proposals)
    return len(proposals)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Consolidate KEP metadata into a single JSON file. "
                    "Command line flags override config values."
    )
    configure_cli(parser)
    args = parser.parse_args(argv)

    if not args.dir:
        sys.exit("please specify the root directory for KEPs using '--dir'")
    if not args.output:
        sys.exit("please specify the file path for the output json using '--output'")

    try:
        run(Path(args.dir), Path(args.output), extra_ignored=args.ignore, keep_going=args.keep_going)
    except KepifyError as e:
        sys.exit(f"Error: {e}")


if __name__ == '__main__':
    main()
