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


# "Unused" imports and star imports are ok in __init__.py.
from .values import * # noqa: F401, F403
from .collapsing import * # noqa: F401, F403
from .keyed_archive import * # noqa: F401, F403
from .reifying import * # noqa: F401, F403
from .document import * # noqa: F401, F403
from .reading import * # noqa: F401, F403

# .types and its submodules are normally not used directly,
# but it's important that they are imported,
# so that their classes are registered with the default registry.
from . import types # noqa: F401

# To release a new version:
# * Remove the .dev suffix from the version number in this file and in pyproject.toml.
# * Remove the ``dist`` directory (if it exists) to clean up any old release files.
# * Run ``python3 -m build`` to build the release files.
# * Run ``python3 -m twine check dist/*`` to check the release files.
# * Commit the changes to main and tag the release commit with the version number, prefixed with a "v".
# * Upload the release files to PyPI using ``python3 -m twine upload dist/*``.

# After releasing:
# * Bump the version number in this file and in pyproject.toml to the next version and add a .dev suffix.

__version__ = "0.1.0.dev"
