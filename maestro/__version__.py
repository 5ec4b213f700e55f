"""Definition file for various version numbers."""

import os

# Version number for maestro
_version_file = os.path.join(os.path.dirname(__file__), "version.txt")
with open(_version_file, "r", encoding="utf-8") as f:
  __version__ = f.read().strip()

# Version of the serialized form produced by `maestro.serializer` for traces and models.
SERIALIZED_FORM_VERSION = "0.1.0"
