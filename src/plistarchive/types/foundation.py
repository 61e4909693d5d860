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


import logging
import typing
import urllib.parse
import uuid

from .. import advanced_repr
from .. import collapsing
from .. import reifying


_LOG = logging.getLogger(__name__)


def _typed_field(obj: reifying.KnownArchivedObject, key: str, expected_type: typing.Union[type, typing.Tuple[type, ...]]) -> typing.Optional[typing.Any]:
	"""Get a field that the object's class requires,
	or log a warning and return ``None`` if it's missing or has the wrong type.
	"""
	
	try:
		value = obj.fields[key]
	except KeyError:
		_LOG.warning("%s object has no %r field - not converting it", obj.class_name, key)
		return None
	
	if not isinstance(value, expected_type):
		_LOG.warning("%s object's %r field has unexpected type %s - not converting it", obj.class_name, key, type(value).__name__)
		return None
	
	return value


@reifying.archived_class
class NSObject(reifying.KnownArchivedObject):
	pass


@reifying.archived_class
class NSArray(NSObject):
	def replacement(self) -> typing.Any:
		elements = _typed_field(self, "NS.objects", list)
		if elements is None:
			return self
		return elements


@reifying.archived_class
class NSMutableArray(NSArray):
	pass


@reifying.archived_class
class NSSet(NSObject):
	"""An unordered collection of objects.
	
	Unlike arrays and dictionaries,
	sets are not replaced with the corresponding Python type,
	because their elements are often unhashable (e. g. dicts).
	The elements are available as a list in :attr:`elements`.
	"""
	
	elements: typing.List[typing.Any]
	
	def replacement(self) -> typing.Any:
		elements = _typed_field(self, "NS.objects", list)
		self.elements = [] if elements is None else elements
		return self
	
	def _as_multiline_string_header_(self) -> str:
		if not self.elements:
			count_desc = "empty"
		elif len(self.elements) == 1:
			count_desc = "1 element"
		else:
			count_desc = f"{len(self.elements)} elements"
		
		return f"{self.class_name}, {count_desc}"
	
	def _as_multiline_string_body_(self) -> typing.Iterable[str]:
		for element in self.elements:
			yield from advanced_repr.as_multiline_string(element)
	
	def __repr__(self) -> str:
		return f"{type(self).__name__}({self.elements!r})"


@reifying.archived_class
class NSMutableSet(NSSet):
	pass


@reifying.archived_class
class NSDictionary(NSObject):
	def replacement(self) -> typing.Any:
		keys = _typed_field(self, "NS.keys", list)
		objects = _typed_field(self, "NS.objects", list)
		if keys is None or objects is None:
			return self
		
		if len(keys) != len(objects):
			_LOG.warning("%s object has %d keys, but %d values - not converting it", self.class_name, len(keys), len(objects))
			return self
		
		try:
			return dict(zip(keys, objects))
		except TypeError:
			_LOG.warning("%s object has unhashable keys - not converting it", self.class_name)
			return self


@reifying.archived_class
class NSMutableDictionary(NSDictionary):
	pass


@reifying.archived_class
class NSString(NSObject):
	def replacement(self) -> typing.Any:
		value = _typed_field(self, "NS.string", str)
		if value is None:
			return self
		return value


@reifying.archived_class
class NSMutableString(NSString):
	pass


@reifying.archived_class
class NSData(NSObject):
	def replacement(self) -> typing.Any:
		value = _typed_field(self, "NS.data", bytes)
		if value is None:
			return self
		return value


@reifying.archived_class
class NSMutableData(NSData):
	pass


@reifying.archived_class
class NSDate(NSObject):
	def replacement(self) -> typing.Any:
		offset = _typed_field(self, "NS.time", (int, float))
		if offset is None:
			return self
		return collapsing.date_from_reference_offset(offset)


@reifying.archived_class
class NSURL(NSObject):
	relative_to: "typing.Optional[NSURL]"
	value: str
	
	def replacement(self) -> typing.Any:
		base = self.fields.get("NS.base")
		value = _typed_field(self, "NS.relative", str)
		if value is None:
			return self
		
		if base is not None and not isinstance(base, NSURL):
			_LOG.warning("%s object's base URL has unexpected type %s - not converting it", self.class_name, type(base).__name__)
			return self
		elif base is not None and not hasattr(base, "value"):
			_LOG.warning("%s object's base URL could not be converted - not converting it either", self.class_name)
			return self
		
		self.relative_to = base
		self.value = value
		return self
	
	@property
	def absolute(self) -> str:
		"""The full URL string, resolved against the base URL (if any)."""
		
		if self.relative_to is None:
			return self.value
		else:
			return urllib.parse.urljoin(self.relative_to.absolute, self.value)
	
	def __repr__(self) -> str:
		if not hasattr(self, "value"):
			return super().__repr__()
		elif self.relative_to is None:
			return f"{type(self).__name__}({self.value!r})"
		else:
			return f"{type(self).__name__}(relative_to={self.relative_to!r}, value={self.value!r})"


@reifying.archived_class
class NSUUID(NSObject):
	def replacement(self) -> typing.Any:
		uuid_bytes = _typed_field(self, "NS.uuidbytes", bytes)
		if uuid_bytes is None:
			return self
		
		if len(uuid_bytes) != 16:
			_LOG.warning("%s object's UUID is %d bytes long instead of 16 - not converting it", self.class_name, len(uuid_bytes))
			return self
		
		return uuid.UUID(bytes=uuid_bytes)


@reifying.archived_class
class NSNull(NSObject):
	def replacement(self) -> typing.Any:
		return None
