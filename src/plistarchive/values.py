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


"""The tagged value model that property list readers produce.

Every node of a deserialized property list is a :class:`TaggedValue`,
which pairs a :class:`Tag` with a payload of the matching Python type.
Container payloads (arrays and dicts) hold further :class:`TaggedValue` nodes.

Readers usually hand over their trees in the "wire shape",
where each node is a two-element sequence ``(tag_name, payload)``,
e. g. ``("array", [("string", "kitten"), ("integer", 42)])``.
:meth:`TaggedValue.from_wire` converts such a tree.
"""


import enum
import types
import typing

from . import advanced_repr

if typing.TYPE_CHECKING:
	from . import document


__all__ = [
	"NULL_STRING",
	"MalformedValueError",
	"Tag",
	"TaggedValue",
]


# String payload that stands for an absent (nil) value.
NULL_STRING = "$null"


class MalformedValueError(ValueError):
	"""Raised if a tagged value's payload doesn't have the shape required by its tag."""


class Tag(enum.Enum):
	"""The kinds of values that can appear in a property list tree.
	
	The enum values are the tag names used in the wire shape.
	"""
	
	ARRAY = "array"
	DICT = "dict"
	STRING = "string"
	INTEGER = "integer"
	REAL = "real"
	DATE = "date"
	DATA = "data"
	UID = "UID"
	BOOL = "bool"


def _is_document(payload: object) -> bool:
	# Imported lazily, because the document module depends on this one.
	from . import document
	
	return isinstance(payload, document.PlistDocument)


def _check_payload(tag: Tag, payload: typing.Any) -> typing.Any:
	"""Check that ``payload`` has the shape required by ``tag``
	and return it in the form in which it is stored.
	
	Containers are only checked shallowly -
	the elements of an array and the values of a dict are not inspected.
	"""
	
	if tag == Tag.ARRAY:
		if not isinstance(payload, (list, tuple)):
			raise MalformedValueError(f"Array payload must be a list or tuple, not {type(payload)}")
		return tuple(payload)
	elif tag == Tag.DICT:
		if not isinstance(payload, typing.Mapping):
			raise MalformedValueError(f"Dict payload must be a mapping, not {type(payload)}")
		for key in payload:
			if not isinstance(key, str):
				raise MalformedValueError(f"Dict keys must be strings, not {type(key)}")
		return types.MappingProxyType(dict(payload))
	elif tag == Tag.STRING:
		if not isinstance(payload, str):
			raise MalformedValueError(f"String payload must be a str, not {type(payload)}")
		return payload
	elif tag == Tag.INTEGER:
		if not isinstance(payload, int) or isinstance(payload, bool):
			raise MalformedValueError(f"Integer payload must be an int, not {type(payload)}")
		return payload
	elif tag in {Tag.REAL, Tag.DATE}:
		if not isinstance(payload, (int, float)) or isinstance(payload, bool):
			raise MalformedValueError(f"{tag.name.capitalize()} payload must be a float, not {type(payload)}")
		return float(payload)
	elif tag == Tag.DATA:
		if isinstance(payload, (bytes, bytearray)):
			return bytes(payload)
		elif _is_document(payload):
			return payload
		else:
			raise MalformedValueError(f"Data payload must be bytes or a PlistDocument, not {type(payload)}")
	elif tag == Tag.UID:
		if isinstance(payload, TaggedValue):
			# An already resolved reference.
			return payload
		elif not isinstance(payload, int) or isinstance(payload, bool):
			raise MalformedValueError(f"UID payload must be an int index or a resolved TaggedValue, not {type(payload)}")
		elif payload < 0:
			raise MalformedValueError(f"UID index cannot be negative: {payload}")
		return payload
	elif tag == Tag.BOOL:
		if not isinstance(payload, bool):
			raise MalformedValueError(f"Bool payload must be a bool, not {type(payload)}")
		return payload
	else:
		raise AssertionError(f"Unhandled tag: {tag}")


class TaggedValue(advanced_repr.AsMultilineStringBase):
	"""A single node of a property list tree: a tag and a payload of the matching type.
	
	Instances are immutable.
	Array payloads are stored as tuples and dict payloads as read-only mappings,
	so that a tree can be shared freely without being modified behind its owner's back.
	"""
	
	_tag: Tag
	_value: typing.Any
	
	def __init__(self, tag: Tag, value: typing.Any) -> None:
		"""Create a tagged value.
		
		:raise MalformedValueError: If ``value`` doesn't have the type required by ``tag``.
		"""
		
		super().__init__()
		
		if not isinstance(tag, Tag):
			raise MalformedValueError(f"Tag must be a Tag, not {type(tag)}")
		
		object.__setattr__(self, "_tag", tag)
		object.__setattr__(self, "_value", _check_payload(tag, value))
	
	@property
	def tag(self) -> Tag:
		return self._tag
	
	@property
	def value(self) -> typing.Any:
		return self._value
	
	def __setattr__(self, name: str, value: typing.Any) -> None:
		raise AttributeError(f"{type(self).__name__} objects are immutable")
	
	@classmethod
	def array(cls, elements: typing.Iterable["TaggedValue"]) -> "TaggedValue":
		return cls(Tag.ARRAY, list(elements))
	
	@classmethod
	def dict(cls, entries: typing.Mapping[str, "TaggedValue"]) -> "TaggedValue":
		return cls(Tag.DICT, entries)
	
	@classmethod
	def string(cls, value: typing.Optional[str]) -> "TaggedValue":
		"""Create a string value. ``None`` is stored as the ``$null`` sentinel string."""
		
		return cls(Tag.STRING, NULL_STRING if value is None else value)
	
	@classmethod
	def integer(cls, value: int) -> "TaggedValue":
		return cls(Tag.INTEGER, value)
	
	@classmethod
	def real(cls, value: float) -> "TaggedValue":
		return cls(Tag.REAL, value)
	
	@classmethod
	def date(cls, seconds_since_reference_date: float) -> "TaggedValue":
		return cls(Tag.DATE, seconds_since_reference_date)
	
	@classmethod
	def data(cls, value: "typing.Union[bytes, document.PlistDocument]") -> "TaggedValue":
		return cls(Tag.DATA, value)
	
	@classmethod
	def uid(cls, index: int) -> "TaggedValue":
		return cls(Tag.UID, index)
	
	@classmethod
	def boolean(cls, value: bool) -> "TaggedValue":
		return cls(Tag.BOOL, value)
	
	@classmethod
	def from_wire(cls, obj: typing.Any) -> "TaggedValue":
		"""Convert a tree in the wire shape to :class:`TaggedValue` nodes.
		
		Each node must be a two-element list or tuple ``(tag_name, payload)``,
		where ``tag_name`` is the value of one of the :class:`Tag` members.
		Array and dict payloads are converted recursively.
		A ``UID`` payload may itself be a node in wire shape,
		which is treated as an already resolved reference.
		Nodes that are already :class:`TaggedValue` instances are accepted as-is.
		
		:raise MalformedValueError: If any node doesn't have the expected shape,
			uses an unknown tag name,
			or has a payload that doesn't match its tag.
		"""
		
		if isinstance(obj, TaggedValue):
			return obj
		
		if not isinstance(obj, (list, tuple)) or len(obj) != 2:
			raise MalformedValueError(f"Expected a (tag, payload) pair, not {obj!r}")
		
		tag_name, payload = obj
		try:
			tag = Tag(tag_name)
		except ValueError:
			raise MalformedValueError(f"Unknown tag: {tag_name!r}")
		
		if tag == Tag.ARRAY:
			if not isinstance(payload, (list, tuple)):
				raise MalformedValueError(f"Array payload must be a list or tuple, not {type(payload)}")
			return cls(tag, [cls.from_wire(element) for element in payload])
		elif tag == Tag.DICT:
			if not isinstance(payload, typing.Mapping):
				raise MalformedValueError(f"Dict payload must be a mapping, not {type(payload)}")
			return cls(tag, {key: cls.from_wire(value) for key, value in payload.items()})
		elif tag == Tag.UID and isinstance(payload, (list, tuple)):
			return cls(tag, cls.from_wire(payload))
		else:
			return cls(tag, payload)
	
	def __getitem__(self, key: typing.Union[str, int]) -> "TaggedValue":
		"""Look up an entry of a dict or an element of an array."""
		
		if self._tag not in {Tag.ARRAY, Tag.DICT}:
			raise TypeError(f"Cannot index into a {self._tag.value} value")
		return self._value[key]
	
	def __eq__(self, other: object) -> bool:
		if not isinstance(other, TaggedValue):
			return NotImplemented
		
		return self._tag == other._tag and self._value == other._value
	
	def __hash__(self) -> int:
		if self._tag in {Tag.ARRAY, Tag.DICT}:
			raise TypeError(f"Unhashable {type(self).__name__} of type {self._tag.value}")
		return hash((self._tag, self._value))
	
	def __repr__(self) -> str:
		if self._tag == Tag.DICT:
			value_repr = repr(dict(self._value))
		else:
			value_repr = repr(self._value)
		return f"{type(self).__module__}.{type(self).__qualname__}({self._tag}, {value_repr})"
	
	def _as_multiline_string_header_(self) -> str:
		if self._tag == Tag.ARRAY:
			count = len(self._value)
			return f"array, {count} element{'' if count == 1 else 's'}"
		elif self._tag == Tag.DICT:
			count = len(self._value)
			return f"dict, {count} entr{'y' if count == 1 else 'ies'}"
		elif self._tag == Tag.UID and isinstance(self._value, TaggedValue):
			return "UID, resolved"
		elif self._tag == Tag.DATA and _is_document(self._value):
			return "data, nested plist"
		else:
			return f"{self._tag.value}: {self._value!r}"
	
	def _as_multiline_string_body_(self) -> typing.Iterable[str]:
		if self._tag == Tag.ARRAY:
			for element in self._value:
				yield from advanced_repr.as_multiline_string(element)
		elif self._tag == Tag.DICT:
			for key, value in self._value.items():
				yield from advanced_repr.as_multiline_string(value, prefix=f"{key!r}: ")
		elif self._tag == Tag.UID and isinstance(self._value, TaggedValue):
			yield from advanced_repr.as_multiline_string(self._value)
		elif self._tag == Tag.DATA and _is_document(self._value):
			yield from advanced_repr.as_multiline_string(self._value.raw_data)
