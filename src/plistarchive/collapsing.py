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
import logging
import typing

from . import values


__all__ = [
	"REFERENCE_DATE",
	"REFERENCE_DATE_UNIX_OFFSET",
	"MALFORMED",
	"date_from_reference_offset",
	"collapse",
]


_LOG = logging.getLogger(__name__)

_UNIX_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)

# Dates in property lists are stored as seconds relative to this reference date.
REFERENCE_DATE = datetime.datetime(2001, 1, 1, tzinfo=datetime.timezone.utc)
# Offset of the reference date from the Unix epoch, in seconds.
REFERENCE_DATE_UNIX_OFFSET = 978307200
assert REFERENCE_DATE - _UNIX_EPOCH == datetime.timedelta(seconds=REFERENCE_DATE_UNIX_OFFSET)


class _Malformed(object):
	def __repr__(self) -> str:
		return "<malformed value>"


# Placeholder returned by collapse in place of values that aren't well-formed tagged values.
# Cannot use None for this,
# because None is the collapsed form of a $null string.
MALFORMED = _Malformed()


def date_from_reference_offset(seconds: float) -> datetime.datetime:
	"""Convert a number of seconds since the reference date into an aware UTC datetime."""
	
	return _UNIX_EPOCH + datetime.timedelta(seconds=seconds + REFERENCE_DATE_UNIX_OFFSET)


def collapse(value: typing.Any) -> typing.Any:
	"""Strip the type tags from a tagged value tree and return the equivalent plain Python values.
	
	Arrays become lists and dicts become dicts,
	with their contents collapsed recursively.
	``$null`` strings become ``None``,
	dates become aware UTC datetimes,
	and resolved references (``UID`` values whose payload is a subtree) are replaced by their collapsed target.
	All other values are returned as their bare payloads.
	
	Anything that is not a :class:`~plistarchive.values.TaggedValue` is logged and replaced with :data:`MALFORMED`,
	so that one bad node doesn't prevent the rest of the tree from being collapsed.
	"""
	
	if not isinstance(value, values.TaggedValue):
		_LOG.warning("Expected a tagged value, but got %r - substituting a placeholder", value)
		return MALFORMED
	
	tag = value.tag
	if tag == values.Tag.ARRAY:
		return [collapse(element) for element in value.value]
	elif tag == values.Tag.DICT:
		return {key: collapse(entry) for key, entry in value.value.items()}
	elif tag == values.Tag.STRING:
		return None if value.value == values.NULL_STRING else value.value
	elif tag == values.Tag.DATE:
		return date_from_reference_offset(value.value)
	elif tag == values.Tag.UID and isinstance(value.value, values.TaggedValue):
		return collapse(value.value)
	else:
		return value.value
