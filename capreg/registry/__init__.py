"""Registry: source-of-truth layer for the wishlist and the capability catalog.

The registry provides:
- Wishlist: requests for capabilities, votes, and the status lifecycle
- Catalog: published capabilities with their required usage documentation
- Validation: schema and invariant checks over hand-edited documents
"""

from capreg.registry.errors import ErrorKind, OperationResult, RegistryError
from capreg.registry.registry import Registry

__all__ = ["ErrorKind", "OperationResult", "Registry", "RegistryError"]
