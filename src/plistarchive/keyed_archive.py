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


"""Detection of ``NSKeyedArchiver`` archives and resolution of the object references in them.

A keyed archive is a property list whose root dict has the following entries:

* ``$archiver``: the string ``NSKeyedArchiver``
* ``$version``: the integer ``100000``
* ``$objects``: an array of all objects in the archived object graph (the object table)
* ``$top``: a dict whose ``root`` entry refers to the root object

Objects in the graph are stored only once, in the object table.
Everywhere else they are referred to using ``UID`` values,
which are indices into the object table.
"""


import logging
import typing

from . import values


__all__ = [
	"ARCHIVER_NAME",
	"ARCHIVE_VERSION",
	"CyclicReferenceError",
	"is_archive",
	"ReferenceResolver",
	"resolve_references",
	"resolve_root",
]


_LOG = logging.getLogger(__name__)

ARCHIVER_NAME = "NSKeyedArchiver"
ARCHIVE_VERSION = 100000


class CyclicReferenceError(ValueError):
	"""Raised when resolving the references in an archive whose object graph contains a cycle.
	
	References are resolved by substituting a copy of the referenced object for each reference,
	so a cyclic object graph cannot be resolved.
	"""
	
	cycle: typing.Sequence[int]
	
	def __init__(self, cycle: typing.Sequence[int]) -> None:
		super().__init__(f"Object references form a cycle: {' -> '.join(f'#{index}' for index in cycle)}")
		
		self.cycle = cycle


def _entry_has_tag(entries: typing.Mapping[str, typing.Any], key: str, tag: values.Tag) -> bool:
	entry = entries.get(key)
	return isinstance(entry, values.TaggedValue) and entry.tag == tag


def is_archive(value: typing.Any) -> bool:
	"""Check whether a tagged value is the root of a keyed archive.
	
	This is a pure predicate -
	a value that is missing any of the required entries,
	or has an entry of the wrong type or with the wrong value,
	is simply not an archive.
	"""
	
	if not isinstance(value, values.TaggedValue) or value.tag != values.Tag.DICT:
		return False
	
	entries = value.value
	
	if not _entry_has_tag(entries, "$archiver", values.Tag.STRING):
		return False
	if entries["$archiver"].value != ARCHIVER_NAME:
		return False
	
	if not _entry_has_tag(entries, "$objects", values.Tag.ARRAY):
		return False
	
	if not _entry_has_tag(entries, "$top", values.Tag.DICT):
		return False
	if "root" not in entries["$top"].value:
		return False
	
	if not _entry_has_tag(entries, "$version", values.Tag.INTEGER):
		return False
	if str(entries["$version"].value) != str(ARCHIVE_VERSION):
		return False
	
	return True


class ReferenceResolver(object):
	"""Replaces ``UID`` references with the objects they refer to.
	
	Each reference is replaced with a ``UID`` value whose payload is the (recursively resolved) referenced object,
	instead of the object table index.
	Every reference is expanded separately,
	so two references to the same object result in two equal but distinct subtrees.
	The input tree and the object table are never modified.
	"""
	
	object_table: typing.Sequence[values.TaggedValue]
	# Object table indices of the references that are currently being resolved,
	# from the outermost to the innermost.
	_resolving: typing.List[int]
	
	def __init__(self, object_table: typing.Sequence[values.TaggedValue]) -> None:
		super().__init__()
		
		self.object_table = object_table
		self._resolving = []
	
	def _resolve_reference(self, reference: values.TaggedValue) -> values.TaggedValue:
		index = reference.value
		if isinstance(index, values.TaggedValue):
			# Already resolved.
			return reference
		
		if index >= len(self.object_table):
			_LOG.warning("Reference to object #%d is outside of the object table (%d objects) - leaving it unresolved", index, len(self.object_table))
			return reference
		
		if index in self._resolving:
			cycle = self._resolving[self._resolving.index(index):] + [index]
			raise CyclicReferenceError(cycle)
		
		self._resolving.append(index)
		try:
			target = self.resolve(self.object_table[index])
		finally:
			self._resolving.pop()
		
		if not isinstance(target, values.TaggedValue):
			# A malformed entry, left for collapse to report like any other.
			return target
		
		return values.TaggedValue(values.Tag.UID, target)
	
	def resolve(self, value: values.TaggedValue) -> values.TaggedValue:
		"""Resolve all references in ``value`` and return the resolved tree.
		
		:raise CyclicReferenceError: If a reference is reached again while it is being resolved.
		"""
		
		if not isinstance(value, values.TaggedValue):
			# Left for collapse to report.
			return value
		
		tag = value.tag
		if tag == values.Tag.UID:
			return self._resolve_reference(value)
		elif tag == values.Tag.ARRAY:
			return values.TaggedValue(tag, [self.resolve(element) for element in value.value])
		elif tag == values.Tag.DICT:
			return values.TaggedValue(tag, {key: self.resolve(entry) for key, entry in value.value.items()})
		elif tag == values.Tag.DATA and not isinstance(value.value, bytes):
			# An embedded property list, which is replaced with its own root object.
			nested_root = value.value.raw_data
			if is_archive(nested_root):
				return resolve_root(nested_root)
			else:
				return nested_root
		else:
			return value


def resolve_references(value: values.TaggedValue, object_table: typing.Sequence[values.TaggedValue]) -> values.TaggedValue:
	"""Resolve all references in ``value`` against the given object table.
	
	See :class:`ReferenceResolver` for details.
	"""
	
	return ReferenceResolver(object_table).resolve(value)


def resolve_root(archive: values.TaggedValue) -> values.TaggedValue:
	"""Resolve the root object of a keyed archive (the ``root`` entry of ``$top``) against the archive's object table.
	
	:raise ValueError: If ``archive`` is not a keyed archive.
	:raise CyclicReferenceError: If the object graph reachable from the root contains a cycle.
	"""
	
	if not is_archive(archive):
		raise ValueError("Not a keyed archive")
	
	return resolve_references(archive["$top"]["root"], archive["$objects"].value)
