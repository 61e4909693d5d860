# This file is part of the python-plistarchive library.
# Copyright (C) 2020 dgelessus
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.


import argparse
import logging
import sys
import typing


from . import __version__
from . import advanced_repr
from . import document
from . import keyed_archive


def make_subcommand_parser(subs: typing.Any, name: str, *, help: str, description: str, **kwargs: typing.Any) -> argparse.ArgumentParser:
	"""Add a subcommand parser with some slightly modified defaults to a subcommand set.
	
	This function is used to ensure that all subcommands use the same base configuration for their ArgumentParser.
	"""
	
	ap = subs.add_parser(
		name,
		formatter_class=argparse.RawDescriptionHelpFormatter,
		help=help,
		description=description,
		allow_abbrev=False,
		add_help=False,
		**kwargs,
	)
	
	ap.add_argument("--help", action="help", help="Display this help message and exit.")
	ap.add_argument("file", help="The plist file to read, or - for stdin.")
	
	return ap


def open_plist_file(file: str) -> document.PlistDocument:
	if file == "-":
		return document.PlistDocument.from_stream(sys.stdin.buffer)
	else:
		return document.PlistDocument.open(file)


def print_lines(lines: typing.Iterable[str]) -> None:
	for line in lines:
		print(line)


def do_read(ns: argparse.Namespace) -> typing.NoReturn:
	doc = open_plist_file(ns.file)
	print_lines(advanced_repr.as_multiline_string(doc.raw_data))
	sys.exit(0)


def do_data(ns: argparse.Namespace) -> typing.NoReturn:
	doc = open_plist_file(ns.file)
	print_lines(advanced_repr.as_multiline_string(doc.data()))
	sys.exit(0)


def do_decode(ns: argparse.Namespace) -> typing.NoReturn:
	doc = open_plist_file(ns.file)
	doc.use_superclasses = ns.superclasses
	
	if not doc.is_archive():
		print(f"Not a keyed archive: {ns.file}", file=sys.stderr)
		sys.exit(1)
	
	try:
		obj = doc.object()
	except keyed_archive.CyclicReferenceError as exc:
		print(f"Cannot decode {ns.file}: {exc}", file=sys.stderr)
		sys.exit(1)
	
	print_lines(advanced_repr.as_multiline_string(obj))
	sys.exit(0)


def main() -> typing.NoReturn:
	"""Main function of the CLI.
	
	This function is a valid setuptools entry point.
	Arguments are passed in sys.argv,
	and every execution path ends with a sys.exit call.
	(setuptools entry points are also permitted to return an integer,
	which will be treated as an exit code.
	We do not use this feature and instead always call sys.exit ourselves.)
	"""
	
	ap = argparse.ArgumentParser(
		formatter_class=argparse.RawDescriptionHelpFormatter,
		description="""
%(prog)s is a tool for dumping property list files, in particular keyed
archives produced by the NSKeyedArchiver class in Apple's Foundation framework.
""",
		allow_abbrev=False,
		add_help=False,
	)
	
	ap.add_argument("--help", action="help", help="Display this help message and exit.")
	ap.add_argument("--version", action="version", version=__version__, help="Display version information and exit.")
	ap.add_argument("--debug", action="store_true", help="Log debugging information about lookups and conversions.")
	
	subs = ap.add_subparsers(
		dest="subcommand",
		metavar="SUBCOMMAND",
	)
	
	make_subcommand_parser(
		subs,
		"read",
		help="Read and display the raw tagged contents of a plist.",
		description="""
Read and display the raw contents of a plist.

Every value is displayed together with its type tag, as it is stored in the
plist. In keyed archives, object references (UIDs) are not resolved and are
displayed as plain indices into the $objects array.
""",
	)
	
	make_subcommand_parser(
		subs,
		"data",
		help="Read and display the contents of a plist as plain values.",
		description="""
Read and display the contents of a plist as plain values.

Type tags are removed, $null strings are displayed as None, and dates are
converted to UTC datetimes. Keyed archives are not treated specially.
""",
	)
	
	sub_decode = make_subcommand_parser(
		subs,
		"decode",
		help="Read, decode and display the root object of a keyed archive.",
		description="""
Read, decode and display the root object of a keyed archive.

Object references are resolved and objects are reconstructed based on their
class when the class is known. Foundation collections, strings, dates and
similar classes are converted to the corresponding Python values. Objects of
unknown classes are displayed as plain dicts of their fields.
""",
	)
	sub_decode.add_argument("--superclasses", action="store_true", help="Reconstruct objects of unknown classes as their closest known superclass.")
	
	ns = ap.parse_args()
	
	logging.basicConfig(
		level=logging.DEBUG if ns.debug else logging.WARNING,
		format="%(levelname)s:%(name)s: %(message)s",
	)
	
	if ns.subcommand is None:
		print("Missing subcommand", file=sys.stderr)
		sys.exit(2)
	elif ns.subcommand == "read":
		do_read(ns)
	elif ns.subcommand == "data":
		do_data(ns)
	elif ns.subcommand == "decode":
		do_decode(ns)
	else:
		print(f"Unknown subcommand: {ns.subcommand!r}", file=sys.stderr)
		sys.exit(2)


if __name__ == "__main__":
	sys.exit(main())
