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


"""Reading of property list files into :class:`~plistarchive.document.PlistDocument` objects.

The actual parsing of the XML and binary property list formats is done by :mod:`plistlib`.
This module only converts :mod:`plistlib`'s output into tagged value trees.
``data`` values that contain a binary property list
(as produced when an archive is embedded in another archive)
are parsed as well and become nested documents.
"""


import datetime
import logging
import os
import plistlib
import typing

from . import collapsing
from . import document
from . import values


__all__ = [
	"tagged_from_plistlib",
	"load",
	"loads",
	"load_file",
	"unarchive_from_stream",
	"unarchive_from_data",
	"unarchive_from_file",
]


_LOG = logging.getLogger(__name__)

_BINARY_PLIST_MAGIC = b"bplist00"


def _tagged_from_data(data: bytes, document_kwargs: typing.Mapping[str, typing.Any]) -> values.TaggedValue:
	if data.startswith(_BINARY_PLIST_MAGIC):
		try:
			nested = plistlib.loads(data, fmt=plistlib.FMT_BINARY)
		except ValueError as exc:
			# Only looks like a plist - keep the raw data.
			_LOG.debug("Data value starts with %r, but is not a valid binary plist: %s", _BINARY_PLIST_MAGIC, exc)
		else:
			nested_document = document.PlistDocument(tagged_from_plistlib(nested, **document_kwargs), **document_kwargs)
			return values.TaggedValue(values.Tag.DATA, nested_document)
	
	return values.TaggedValue(values.Tag.DATA, data)


def tagged_from_plistlib(obj: typing.Any, **document_kwargs: typing.Any) -> values.TaggedValue:
	"""Convert a value returned by :func:`plistlib.load` or :func:`plistlib.loads` to a tagged value tree.
	
	:param document_kwargs: Keyword arguments for the :class:`~plistarchive.document.PlistDocument` objects
		created for embedded binary property lists.
	:raise ~plistarchive.values.MalformedValueError: If ``obj`` contains a value that cannot appear in a property list.
	"""
	
	if isinstance(obj, dict):
		return values.TaggedValue(values.Tag.DICT, {key: tagged_from_plistlib(value, **document_kwargs) for key, value in obj.items()})
	elif isinstance(obj, (list, tuple)):
		return values.TaggedValue(values.Tag.ARRAY, [tagged_from_plistlib(element, **document_kwargs) for element in obj])
	elif isinstance(obj, str):
		return values.TaggedValue(values.Tag.STRING, obj)
	elif isinstance(obj, bool):
		# Must be checked before int, because bool is a subclass of int.
		return values.TaggedValue(values.Tag.BOOL, obj)
	elif isinstance(obj, int):
		return values.TaggedValue(values.Tag.INTEGER, obj)
	elif isinstance(obj, float):
		return values.TaggedValue(values.Tag.REAL, obj)
	elif isinstance(obj, datetime.datetime):
		if obj.tzinfo is None:
			# plistlib returns naive datetimes in UTC.
			obj = obj.replace(tzinfo=datetime.timezone.utc)
		return values.TaggedValue(values.Tag.DATE, (obj - collapsing.REFERENCE_DATE).total_seconds())
	elif isinstance(obj, (bytes, bytearray)):
		return _tagged_from_data(bytes(obj), document_kwargs)
	elif isinstance(obj, plistlib.UID):
		return values.TaggedValue(values.Tag.UID, obj.data)
	else:
		raise values.MalformedValueError(f"Unsupported plist value type: {type(obj)}")


def load(f: typing.BinaryIO, **kwargs: typing.Any) -> document.PlistDocument:
	"""Read a document from a binary stream containing property list data.
	
	The format (XML or binary) is detected automatically.
	
	:param kwargs: Keyword arguments for :class:`~plistarchive.document.PlistDocument`.
	"""
	
	return document.PlistDocument(tagged_from_plistlib(plistlib.load(f), **kwargs), **kwargs)


def loads(data: bytes, **kwargs: typing.Any) -> document.PlistDocument:
	"""Read a document from property list data.
	
	The format (XML or binary) is detected automatically.
	
	:param kwargs: Keyword arguments for :class:`~plistarchive.document.PlistDocument`.
	"""
	
	return document.PlistDocument(tagged_from_plistlib(plistlib.loads(data), **kwargs), **kwargs)


def load_file(path: typing.Union[str, bytes, os.PathLike], **kwargs: typing.Any) -> document.PlistDocument:
	"""Read a document from the property list file at the given path."""
	
	with open(path, "rb") as f:
		return load(f, **kwargs)


def unarchive_from_stream(f: typing.BinaryIO, **kwargs: typing.Any) -> typing.Any:
	"""Reconstruct the root object of the keyed archive in the given binary data stream.
	
	:return: The root object, or ``None`` if the data is not a keyed archive.
	"""
	
	return load(f, **kwargs).object()


def unarchive_from_data(data: bytes, **kwargs: typing.Any) -> typing.Any:
	"""Reconstruct the root object of the keyed archive in the given data.
	
	:return: The root object, or ``None`` if the data is not a keyed archive.
	"""
	
	return loads(data, **kwargs).object()


def unarchive_from_file(path: typing.Union[str, bytes, os.PathLike], **kwargs: typing.Any) -> typing.Any:
	"""Reconstruct the root object of the keyed archive in the given file.
	
	:return: The root object, or ``None`` if the file is not a keyed archive.
	"""
	
	return load_file(path, **kwargs).object()
