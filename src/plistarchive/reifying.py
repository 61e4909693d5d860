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


import collections.abc
import importlib
import logging
import typing

from . import advanced_repr


__all__ = [
	"KnownArchivedObject",
	"ClassRegistry",
	"default_registry",
	"register_archived_class",
	"archived_class",
	"Reifier",
	"reify",
]


_LOG = logging.getLogger(__name__)


class KnownArchivedObject(collections.abc.Mapping, advanced_repr.AsMultilineStringBase):
	"""Base class for all Python classes that archived objects can be reconstructed as.
	
	An instance wraps the fields of the archived object
	(every entry of its dict in the archive except ``$class``)
	and provides read-only mapping access to them.
	Subclasses usually convert the fields into something more useful in :meth:`replacement`.
	"""
	
	# archived_name is set by __init_subclass__ on each subclass.
	archived_name: typing.ClassVar[str]
	
	fields: typing.Dict[str, typing.Any]
	class_name: str
	class_hierarchy: typing.List[str]
	
	def __init_subclass__(cls, **kwargs: typing.Any) -> None:
		super().__init_subclass__(**kwargs)
		
		# Set archived_name only if it hasn't already been set manually.
		# Have to check directly in __dict__ instead of with hasattr,
		# because otherwise the archived_name from superclasses would be detected
		# even if archived_name on the class itself hasn't been set manually.
		if "archived_name" not in cls.__dict__:
			cls.archived_name = cls.__name__
	
	def __init__(
		self,
		fields: typing.Optional[typing.Mapping[str, typing.Any]] = None,
		*,
		class_name: typing.Optional[str] = None,
		class_hierarchy: typing.Iterable[str] = (),
	) -> None:
		"""Create an object from already reified fields.
		
		:param fields: The object's fields, without the ``$class`` entry.
		:param class_name: The object's class name as stored in the archive.
			Usually this is the same as :attr:`archived_name`,
			but it is different if the object was reconstructed as one of its superclasses.
		:param class_hierarchy: The object's class and superclass names as stored in the archive (``$classes``),
			if known.
		"""
		
		super().__init__()
		
		self.fields = {} if fields is None else dict(fields)
		self.class_name = type(self).archived_name if class_name is None else class_name
		self.class_hierarchy = list(class_hierarchy)
	
	def replacement(self) -> typing.Any:
		"""Return the value that should stand in for this object in the reified tree.
		
		Called exactly once for every reconstructed object,
		after all of its fields have been reified.
		The default implementation returns ``self``.
		Subclasses that represent plain values (strings, arrays, dates, ...)
		return the corresponding Python value instead.
		"""
		
		return self
	
	def __getitem__(self, key: str) -> typing.Any:
		return self.fields[key]
	
	def __iter__(self) -> typing.Iterator[str]:
		return iter(self.fields)
	
	def __len__(self) -> int:
		return len(self.fields)
	
	def __eq__(self, other: object) -> bool:
		if not isinstance(other, KnownArchivedObject):
			return NotImplemented
		
		return type(self) == type(other) and self.class_name == other.class_name and self.fields == other.fields
	
	__hash__ = None # type: ignore # mutable, like dict
	
	def __repr__(self) -> str:
		if self.class_name == type(self).archived_name:
			return f"{type(self).__name__}({self.fields!r})"
		else:
			return f"{type(self).__name__}({self.fields!r}, class_name={self.class_name!r})"
	
	def _as_multiline_string_header_(self) -> str:
		header = f"object of class {self.class_name}"
		if self.class_name != type(self).archived_name:
			header += f" (as {type(self).archived_name})"
		if not self.fields:
			header += ", no fields"
		return header
	
	def _as_multiline_string_body_(self) -> typing.Iterable[str]:
		for key, value in self.fields.items():
			yield from advanced_repr.as_multiline_string(value, prefix=f"{key}: ")


class ClassRegistry(object):
	"""Maps archived class names to the Python classes used to reconstruct them.
	
	Classes can be registered directly,
	or lazily as a ``"module:attribute"`` path that is only imported when the class is first looked up.
	The registry doesn't check what is registered -
	whether a looked up class is actually usable is checked by :class:`Reifier`.
	"""
	
	_classes_by_name: typing.Dict[str, typing.Any]
	_lazy_paths_by_name: typing.Dict[str, str]
	
	def __init__(self) -> None:
		super().__init__()
		
		self._classes_by_name = {}
		self._lazy_paths_by_name = {}
	
	def __repr__(self) -> str:
		return f"<{type(self).__module__}.{type(self).__qualname__} at {id(self):#x}: {len(self)} classes>"
	
	def __contains__(self, name: object) -> bool:
		return name in self._classes_by_name or name in self._lazy_paths_by_name
	
	def __len__(self) -> int:
		return len(self.names())
	
	def names(self) -> typing.AbstractSet[str]:
		return self._classes_by_name.keys() | self._lazy_paths_by_name.keys()
	
	def register(self, python_class: typing.Any, name: typing.Optional[str] = None) -> None:
		"""Register a class under the given archived class name.
		
		If no name is given,
		the class's :attr:`~KnownArchivedObject.archived_name` is used,
		or its Python name if it has no ``archived_name``.
		"""
		
		if name is None:
			name = getattr(python_class, "archived_name", python_class.__name__)
		self._lazy_paths_by_name.pop(name, None)
		self._classes_by_name[name] = python_class
	
	def register_lazy(self, name: str, path: str) -> None:
		"""Register a class that is imported on first lookup.
		
		:param name: The archived class name.
		:param path: Where to import the class from, in the form ``"package.module:ClassName"``.
		"""
		
		module_name, sep, attribute = path.partition(":")
		if not sep or not module_name or not attribute:
			raise ValueError(f"Lazy class path must have the form 'module:attribute', not {path!r}")
		self._classes_by_name.pop(name, None)
		self._lazy_paths_by_name[name] = path
	
	def archived_class(self, python_class: typing.Any) -> typing.Any:
		"""Class decorator that registers the decorated class in this registry."""
		
		self.register(python_class)
		return python_class
	
	def _load(self, name: str, path: str) -> typing.Any:
		module_name, _, attribute = path.partition(":")
		_LOG.debug("Loading class %r from %r", name, path)
		try:
			python_class = getattr(importlib.import_module(module_name), attribute)
		except Exception as exc:
			# Importing a module can fail with any exception.
			raise LookupError(f"Could not load class {name!r} from {path!r}: {exc}") from exc
		
		del self._lazy_paths_by_name[name]
		self._classes_by_name[name] = python_class
		return python_class
	
	def lookup(self, name: str) -> typing.Any:
		"""Find the Python class registered for the given archived class name.
		
		:raise LookupError: If no class is registered under this name,
			or if a lazily registered class cannot be imported.
		"""
		
		try:
			return self._classes_by_name[name]
		except KeyError:
			pass
		
		try:
			path = self._lazy_paths_by_name[name]
		except KeyError:
			raise LookupError(f"No Python class has been registered for archived class {name!r}")
		
		return self._load(name, path)


# Holds the built-in classes from plistarchive.types.
default_registry = ClassRegistry()


def register_archived_class(python_class: typing.Type[KnownArchivedObject]) -> None:
	default_registry.register(python_class)


_KAO = typing.TypeVar("_KAO", bound=KnownArchivedObject)


def archived_class(python_class: typing.Type[_KAO]) -> typing.Type[_KAO]:
	register_archived_class(python_class)
	return python_class


def _is_reconstructible(python_class: typing.Any) -> bool:
	return isinstance(python_class, type) and issubclass(python_class, KnownArchivedObject)


class Reifier(object):
	"""Reconstructs typed objects from a collapsed keyed archive.
	
	Every dict with a ``$class`` entry naming a registered class
	is turned into an instance of that class,
	and the instance's :meth:`~KnownArchivedObject.replacement` takes its place.
	Dicts are processed bottom-up,
	so the replacement hooks always see fully reified fields.
	"""
	
	registry: ClassRegistry
	use_superclasses: bool
	
	def __init__(self, registry: typing.Optional[ClassRegistry] = None, *, use_superclasses: bool = False) -> None:
		"""
		:param registry: The classes available for reconstruction.
			Defaults to :data:`default_registry`.
		:param use_superclasses: If true,
			objects of unregistered classes are reconstructed as the first registered class in their ``$classes`` list,
			i. e. their closest known superclass.
			By default such objects are left as plain dicts.
		"""
		
		super().__init__()
		
		self.registry = default_registry if registry is None else registry
		self.use_superclasses = use_superclasses
	
	def _find_class(self, class_name: str, class_hierarchy: typing.Sequence[str]) -> typing.Optional[typing.Type[KnownArchivedObject]]:
		candidates = [class_name]
		if self.use_superclasses:
			candidates += [name for name in class_hierarchy if name != class_name]
		
		errors = []
		for candidate in candidates:
			try:
				python_class = self.registry.lookup(candidate)
			except LookupError as exc:
				errors.append(str(exc))
				continue
			
			if not _is_reconstructible(python_class):
				_LOG.warning("Class registered for %r is not a KnownArchivedObject subclass: %r", candidate, python_class)
				return None
			
			if candidate != class_name:
				_LOG.debug("Reconstructing object of unknown class %r as its superclass %r", class_name, candidate)
			return python_class
		
		_LOG.warning("Cannot reconstruct object of class %r, leaving it untyped: %s", class_name, "; ".join(errors))
		return None
	
	def _reify_dict(self, value: typing.Mapping[str, typing.Any]) -> typing.Any:
		fields = dict(value)
		class_info = fields.pop("$class", None)
		fields = {key: self.reify(field) for key, field in fields.items()}
		
		if class_info is None:
			return fields
		
		if not isinstance(class_info, dict) or not isinstance(class_info.get("$classname"), str):
			_LOG.debug("Ignoring $class entry without a class name: %r", class_info)
			return fields
		
		class_name = class_info["$classname"]
		class_hierarchy = class_info.get("$classes")
		if not isinstance(class_hierarchy, list):
			class_hierarchy = []
		class_hierarchy = [name for name in class_hierarchy if isinstance(name, str)]
		
		python_class = self._find_class(class_name, class_hierarchy)
		if python_class is None:
			return fields
		
		obj = python_class(fields, class_name=class_name, class_hierarchy=class_hierarchy)
		return obj.replacement()
	
	def reify(self, value: typing.Any) -> typing.Any:
		"""Reify a collapsed value and everything it contains.
		
		The input is not modified -
		dicts and lists are copied as they are processed.
		"""
		
		if isinstance(value, dict):
			return self._reify_dict(value)
		elif isinstance(value, list):
			return [self.reify(element) for element in value]
		else:
			return value


def reify(value: typing.Any, registry: typing.Optional[ClassRegistry] = None, *, use_superclasses: bool = False) -> typing.Any:
	"""Reify a collapsed value using the given registry (by default :data:`default_registry`).
	
	See :class:`Reifier` for details.
	"""
	
	return Reifier(registry, use_superclasses=use_superclasses).reify(value)
