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


import contextlib
import datetime
import io
import os
import pathlib
import plistlib
import sys
import tempfile
import unittest
import unittest.mock

import plistarchive
import plistarchive.__main__
import plistarchive.document
import plistarchive.reading
import plistarchive.types.foundation
import plistarchive.values
from plistarchive.values import Tag, TaggedValue


def archive_data(objects: list, root: int = 1) -> bytes:
	"""Serialize a keyed archive with the given object table as a binary plist."""
	
	return plistlib.dumps({
		"$archiver": "NSKeyedArchiver",
		"$version": 100000,
		"$top": {"root": plistlib.UID(root)},
		"$objects": objects,
	}, fmt=plistlib.FMT_BINARY)


DICTIONARY_ARCHIVE = archive_data([
	"$null",
	{"NS.keys": [plistlib.UID(2), plistlib.UID(3)], "NS.objects": [plistlib.UID(4), 42], "$class": plistlib.UID(5)},
	"name",
	"count",
	"kitten",
	{"$classname": "NSDictionary", "$classes": ["NSDictionary", "NSObject"]},
])

STRING_ARCHIVE = archive_data([
	"$null",
	{"NS.string": "inside", "$class": plistlib.UID(2)},
	{"$classname": "NSMutableString", "$classes": ["NSMutableString", "NSString", "NSObject"]},
])


class TaggedFromPlistlibTests(unittest.TestCase):
	def test_scalars(self) -> None:
		convert = plistarchive.reading.tagged_from_plistlib
		self.assertEqual(convert("kitten"), TaggedValue.string("kitten"))
		self.assertEqual(convert(42), TaggedValue.integer(42))
		self.assertEqual(convert(3.5), TaggedValue.real(3.5))
		self.assertEqual(convert(True), TaggedValue.boolean(True))
		self.assertEqual(convert(b"\x00"), TaggedValue.data(b"\x00"))
		self.assertEqual(convert(plistlib.UID(7)), TaggedValue.uid(7))
	
	def test_dates(self) -> None:
		convert = plistarchive.reading.tagged_from_plistlib
		self.assertEqual(convert(datetime.datetime(2001, 1, 2)), TaggedValue.date(86400.0))
		self.assertEqual(convert(datetime.datetime(2001, 1, 1, tzinfo=datetime.timezone.utc)), TaggedValue.date(0.0))
		self.assertEqual(convert(datetime.datetime(2000, 12, 31)), TaggedValue.date(-86400.0))
	
	def test_containers(self) -> None:
		value = plistarchive.reading.tagged_from_plistlib({"toys": ["ball", 1]})
		self.assertEqual(value, TaggedValue.from_wire(("dict", {"toys": ("array", [("string", "ball"), ("integer", 1)])})))
	
	def test_nested_plist(self) -> None:
		value = plistarchive.reading.tagged_from_plistlib(STRING_ARCHIVE)
		self.assertEqual(value.tag, Tag.DATA)
		self.assertIsInstance(value.value, plistarchive.document.PlistDocument)
		self.assertTrue(value.value.is_archive())
	
	def test_fake_nested_plist(self) -> None:
		data = b"bplist00 but not really"
		self.assertEqual(plistarchive.reading.tagged_from_plistlib(data), TaggedValue.data(data))
	
	def test_unsupported(self) -> None:
		with self.assertRaises(plistarchive.values.MalformedValueError):
			plistarchive.reading.tagged_from_plistlib(object())


class ReadingTests(unittest.TestCase):
	def test_plain_plist(self) -> None:
		data = plistlib.dumps({"name": "kitten", "born": datetime.datetime(2001, 1, 2)})
		doc = plistarchive.PlistDocument.from_data(data)
		
		self.assertFalse(doc.is_archive())
		self.assertIsNone(doc.object())
		self.assertEqual(doc.data(), {
			"name": "kitten",
			"born": datetime.datetime(2001, 1, 2, tzinfo=datetime.timezone.utc),
		})
	
	def test_unarchive_from_data(self) -> None:
		self.assertEqual(plistarchive.unarchive_from_data(DICTIONARY_ARCHIVE), {"name": "kitten", "count": 42})
	
	def test_unarchive_from_stream(self) -> None:
		self.assertEqual(plistarchive.unarchive_from_stream(io.BytesIO(DICTIONARY_ARCHIVE)), {"name": "kitten", "count": 42})
	
	def test_unarchive_from_file(self) -> None:
		with tempfile.TemporaryDirectory() as tempdir:
			path = pathlib.Path(tempdir) / "archive.plist"
			path.write_bytes(DICTIONARY_ARCHIVE)
			self.assertEqual(plistarchive.unarchive_from_file(path), {"name": "kitten", "count": 42})
			self.assertTrue(plistarchive.PlistDocument.open(path).is_archive())
	
	def test_embedded_archive(self) -> None:
		"""An archive stored as data inside another archive is unarchived along with it."""
		
		data = archive_data([
			"$null",
			{"payload": plistlib.UID(2), "$class": plistlib.UID(3)},
			STRING_ARCHIVE,
			{"$classname": "Container", "$classes": ["Container", "NSObject"]},
		])
		
		obj = plistarchive.unarchive_from_data(data, use_superclasses=True)
		self.assertIsInstance(obj, plistarchive.types.foundation.NSObject)
		self.assertEqual(obj.class_name, "Container")
		self.assertEqual(obj["payload"], "inside")
	
	def test_registry_argument(self) -> None:
		registry = plistarchive.ClassRegistry()
		with self.assertLogs("plistarchive.reifying", level="WARNING"):
			obj = plistarchive.unarchive_from_data(DICTIONARY_ARCHIVE, registry=registry)
		self.assertEqual(obj, {"NS.keys": ["name", "count"], "NS.objects": ["kitten", 42]})


class CommandLineTests(unittest.TestCase):
	def run_main(self, *args: str) -> "tuple[int, str, str]":
		stdout = io.StringIO()
		stderr = io.StringIO()
		with unittest.mock.patch.object(sys, "argv", ["plistarchive", *args]):
			with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
				with self.assertRaises(SystemExit) as cm:
					plistarchive.__main__.main()
		return cm.exception.code, stdout.getvalue(), stderr.getvalue()
	
	def setUp(self) -> None:
		tempdir = tempfile.TemporaryDirectory()
		self.addCleanup(tempdir.cleanup)
		self.archive_path = os.path.join(tempdir.name, "archive.plist")
		with open(self.archive_path, "wb") as f:
			f.write(DICTIONARY_ARCHIVE)
		self.plain_path = os.path.join(tempdir.name, "plain.plist")
		with open(self.plain_path, "wb") as f:
			f.write(plistlib.dumps({"name": "kitten"}))
	
	def test_read(self) -> None:
		code, out, _ = self.run_main("read", self.archive_path)
		self.assertEqual(code, 0)
		self.assertIn("'$archiver': string: 'NSKeyedArchiver'", out)
		self.assertIn("UID: 5", out)
	
	def test_data(self) -> None:
		code, out, _ = self.run_main("data", self.plain_path)
		self.assertEqual(code, 0)
		self.assertEqual(out.splitlines(), ["dict, 1 entry:", "\t'name': 'kitten'"])
	
	def test_decode(self) -> None:
		code, out, _ = self.run_main("decode", self.archive_path)
		self.assertEqual(code, 0)
		self.assertEqual(out.splitlines(), ["dict, 2 entries:", "\t'name': 'kitten'", "\t'count': 42"])
	
	def test_decode_not_an_archive(self) -> None:
		code, out, err = self.run_main("decode", self.plain_path)
		self.assertEqual(code, 1)
		self.assertEqual(out, "")
		self.assertIn("Not a keyed archive", err)
	
	def test_missing_subcommand(self) -> None:
		code, _, err = self.run_main()
		self.assertEqual(code, 2)
		self.assertIn("Missing subcommand", err)


if __name__ == "__main__":
	unittest.main()
