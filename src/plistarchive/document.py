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


import os
import typing

from . import advanced_repr
from . import collapsing
from . import keyed_archive
from . import reifying
from . import values


__all__ = [
	"PlistDocument",
]


class PlistDocument(advanced_repr.AsMultilineStringBase):
	"""A deserialized property list.
	
	The document holds the tagged value tree produced by a property list reader
	and provides the different views of it:
	the tree itself (:attr:`raw_data`),
	plain Python values (:meth:`data`),
	and, for keyed archives, the reconstructed root object (:meth:`object`).
	"""
	
	_raw_data: values.TaggedValue
	registry: typing.Optional[reifying.ClassRegistry]
	use_superclasses: bool
	
	@classmethod
	def from_data(cls, data: bytes, **kwargs: typing.Any) -> "PlistDocument":
		"""Read a document from property list data in any format supported by :mod:`plistlib`."""
		
		from . import reading
		
		return reading.loads(data, **kwargs)
	
	@classmethod
	def from_stream(cls, f: typing.BinaryIO, **kwargs: typing.Any) -> "PlistDocument":
		"""Read a document from a binary stream containing property list data."""
		
		from . import reading
		
		return reading.load(f, **kwargs)
	
	@classmethod
	def open(cls, filename: typing.Union[str, bytes, os.PathLike], **kwargs: typing.Any) -> "PlistDocument":
		"""Read a document from the property list file at the given path."""
		
		from . import reading
		
		return reading.load_file(filename, **kwargs)
	
	def __init__(
		self,
		raw_data: typing.Any,
		*,
		registry: typing.Optional[reifying.ClassRegistry] = None,
		use_superclasses: bool = False,
	) -> None:
		"""Create a document from a tagged value tree.
		
		:param raw_data: The root of the tree,
			either as a :class:`~plistarchive.values.TaggedValue` or in wire shape
			(see :meth:`~plistarchive.values.TaggedValue.from_wire`).
		:param registry: The classes available to :meth:`object`.
			Defaults to :data:`~plistarchive.reifying.default_registry`.
		:param use_superclasses: Passed on to :class:`~plistarchive.reifying.Reifier` by :meth:`object`.
		"""
		
		super().__init__()
		
		self._raw_data = values.TaggedValue.from_wire(raw_data)
		self.registry = registry
		self.use_superclasses = use_superclasses
	
	@property
	def raw_data(self) -> values.TaggedValue:
		"""The document's tagged value tree, exactly as it was passed in."""
		
		return self._raw_data
	
	def data(self) -> typing.Any:
		"""Return the document's contents as plain Python values (see :func:`~plistarchive.collapsing.collapse`)."""
		
		return collapsing.collapse(self._raw_data)
	
	def is_archive(self) -> bool:
		"""Check whether the document is a keyed archive (see :func:`~plistarchive.keyed_archive.is_archive`)."""
		
		return keyed_archive.is_archive(self._raw_data)
	
	def object(self) -> typing.Any:
		"""Reconstruct the archived root object.
		
		The archive's references are resolved,
		the result is collapsed,
		and objects with class information are reified using this document's registry.
		
		:return: The reconstructed root object,
			or ``None`` if the document is not a keyed archive.
		:raise ~plistarchive.keyed_archive.CyclicReferenceError: If the archived object graph contains a cycle.
		"""
		
		if not self.is_archive():
			return None
		
		resolved = keyed_archive.resolve_root(self._raw_data)
		return reifying.reify(collapsing.collapse(resolved), self.registry, use_superclasses=self.use_superclasses)
	
	def __eq__(self, other: object) -> bool:
		if not isinstance(other, PlistDocument):
			return NotImplemented
		
		return self._raw_data == other._raw_data
	
	__hash__ = None # type: ignore # documents compare by contents
	
	def __repr__(self) -> str:
		return f"{type(self).__module__}.{type(self).__qualname__}({self._raw_data!r})"
	
	def _as_multiline_string_header_(self) -> str:
		if self.is_archive():
			return "plist document, keyed archive"
		else:
			return "plist document"
	
	def _as_multiline_string_body_(self) -> typing.Iterable[str]:
		yield from advanced_repr.as_multiline_string(self._raw_data)
