"""Client SDK conformance checking.

Client modules that run inside skill sandboxes must keep to a fixed rule set:
- only standard-library HTTP (urllib) and a short list of allowed modules
- a constructor with a default ``host`` URL
- a ``health()`` probe
- image inputs accepted as bytes, file path, numpy array, or base64 string
- a module docstring showing the import and an example call

``check`` evaluates a pre-extracted ``ClientDescriptor``; ``inspector`` builds
one from Python source.
"""

from capreg.conformance.checker import check
from capreg.conformance.models import ClientDescriptor, ConformanceReport

__all__ = ["ClientDescriptor", "ConformanceReport", "check"]
