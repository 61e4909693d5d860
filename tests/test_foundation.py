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


import datetime
import typing
import unittest
import uuid

import plistarchive
import plistarchive.reifying
import plistarchive.types.foundation


def archived(class_name: str, superclasses: typing.Sequence[str] = ("NSObject",), **fields: object) -> dict:
	"""Build a collapsed archived object of the given class."""
	
	obj = {
		"$class": {"$classname": class_name, "$classes": [class_name, *superclasses]},
	}
	obj.update(fields)
	return obj


class FoundationReifyTests(unittest.TestCase):
	def test_default_registry(self) -> None:
		for name in ["NSObject", "NSArray", "NSMutableArray", "NSDictionary", "NSMutableDictionary", "NSString", "NSDate", "NSURL", "NSNull"]:
			with self.subTest(name=name):
				self.assertIn(name, plistarchive.default_registry)
	
	def test_nsobject(self) -> None:
		obj = plistarchive.reify(archived("NSObject", [], answer=42))
		self.assertIsInstance(obj, plistarchive.types.foundation.NSObject)
		self.assertEqual(obj["answer"], 42)
	
	def test_nsarray(self) -> None:
		for class_name in ["NSArray", "NSMutableArray"]:
			with self.subTest(class_name=class_name):
				obj = plistarchive.reify(archived(class_name, **{"NS.objects": [1, "two", None]}))
				self.assertEqual(obj, [1, "two", None])
	
	def test_nsarray_missing_objects(self) -> None:
		with self.assertLogs("plistarchive.types.foundation", level="WARNING"):
			obj = plistarchive.reify(archived("NSArray"))
		self.assertIsInstance(obj, plistarchive.types.foundation.NSArray)
	
	def test_nsdictionary(self) -> None:
		for class_name in ["NSDictionary", "NSMutableDictionary"]:
			with self.subTest(class_name=class_name):
				obj = plistarchive.reify(archived(class_name, **{"NS.keys": ["name", "lives"], "NS.objects": ["kitten", 9]}))
				self.assertEqual(obj, {"name": "kitten", "lives": 9})
	
	def test_nsdictionary_bad_contents(self) -> None:
		for keys, objects in [
			(["name", "lives"], ["kitten"]),
			([["unhashable"]], ["kitten"]),
		]:
			with self.subTest(keys=keys, objects=objects):
				with self.assertLogs("plistarchive.types.foundation", level="WARNING"):
					obj = plistarchive.reify(archived("NSDictionary", **{"NS.keys": keys, "NS.objects": objects}))
				self.assertIsInstance(obj, plistarchive.types.foundation.NSDictionary)
	
	def test_nested_collections(self) -> None:
		"""Collections contain the replacements of their elements."""
		
		value = archived("NSDictionary", **{
			"NS.keys": [archived("NSString", **{"NS.string": "toys"})],
			"NS.objects": [archived("NSArray", **{"NS.objects": [archived("NSString", **{"NS.string": "ball"})]})],
		})
		self.assertEqual(plistarchive.reify(value), {"toys": ["ball"]})
	
	def test_nsstring(self) -> None:
		for class_name in ["NSString", "NSMutableString"]:
			with self.subTest(class_name=class_name):
				self.assertEqual(plistarchive.reify(archived(class_name, **{"NS.string": "kitten"})), "kitten")
	
	def test_nsdata(self) -> None:
		for class_name in ["NSData", "NSMutableData"]:
			with self.subTest(class_name=class_name):
				self.assertEqual(plistarchive.reify(archived(class_name, **{"NS.data": b"\x00\xff"})), b"\x00\xff")
	
	def test_nsdate(self) -> None:
		obj = plistarchive.reify(archived("NSDate", **{"NS.time": 60.0}))
		self.assertEqual(obj, datetime.datetime(2001, 1, 1, 0, 1, tzinfo=datetime.timezone.utc))
	
	def test_nsset(self) -> None:
		obj = plistarchive.reify(archived("NSMutableSet", ["NSSet", "NSObject"], **{"NS.objects": [1, {"a": 1}]}))
		self.assertIsInstance(obj, plistarchive.types.foundation.NSSet)
		self.assertEqual(obj.elements, [1, {"a": 1}])
		self.assertEqual(str(obj), "NSMutableSet, 2 elements:\n\t1\n\tdict, 1 entry:\n\t\t'a': 1")
	
	def test_nsurl_absolute(self) -> None:
		url = plistarchive.reify(archived("NSURL", **{"NS.base": None, "NS.relative": "https://example.com/index.html"}))
		self.assertIsInstance(url, plistarchive.types.foundation.NSURL)
		self.assertIsNone(url.relative_to)
		self.assertEqual(url.value, "https://example.com/index.html")
		self.assertEqual(url.absolute, "https://example.com/index.html")
	
	def test_nsurl_relative(self) -> None:
		base = archived("NSURL", **{"NS.base": None, "NS.relative": "https://example.com/"})
		url = plistarchive.reify(archived("NSURL", **{"NS.base": base, "NS.relative": "index.html"}))
		self.assertIsInstance(url.relative_to, plistarchive.types.foundation.NSURL)
		self.assertEqual(url.relative_to.value, "https://example.com/")
		self.assertEqual(url.value, "index.html")
		self.assertEqual(url.absolute, "https://example.com/index.html")
	
	def test_nsurl_unconverted_base(self) -> None:
		base = archived("NSURL", **{"NS.base": None})
		with self.assertLogs("plistarchive.types.foundation", level="WARNING"):
			url = plistarchive.reify(archived("NSURL", **{"NS.base": base, "NS.relative": "index.html"}))
		
		self.assertIsInstance(url, plistarchive.types.foundation.NSURL)
		self.assertFalse(hasattr(url, "value"))
		self.assertEqual(url["NS.relative"], "index.html")
		self.assertIsInstance(url["NS.base"], plistarchive.types.foundation.NSURL)
	
	def test_nsuuid(self) -> None:
		obj = plistarchive.reify(archived("NSUUID", **{"NS.uuidbytes": bytes(range(16))}))
		self.assertEqual(obj, uuid.UUID("00010203-0405-0607-0809-0a0b0c0d0e0f"))
	
	def test_nsnull(self) -> None:
		self.assertEqual(plistarchive.reify({"nothing": archived("NSNull")}), {"nothing": None})
	
	def test_unknown_subclass(self) -> None:
		value = archived("MyArray", ["NSArray", "NSObject"], **{"NS.objects": ["a"]})
		self.assertEqual(plistarchive.reify(value, use_superclasses=True), ["a"])
	
	def test_custom_registry(self) -> None:
		"""A registry only reconstructs the classes registered in it."""
		
		registry = plistarchive.reifying.ClassRegistry()
		registry.register(plistarchive.types.foundation.NSArray)
		
		value = archived("NSArray", **{"NS.objects": [archived("NSString", **{"NS.string": "kitten"})]})
		with self.assertLogs("plistarchive.reifying", level="WARNING"):
			obj = plistarchive.reify(value, registry)
		self.assertEqual(obj, [{"NS.string": "kitten"}])


if __name__ == "__main__":
	unittest.main()
