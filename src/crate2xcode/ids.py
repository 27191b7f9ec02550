"""
Deterministic object identifiers for generated Xcode projects.

Xcode links the objects of a project file together by 24-character
identifiers. They are derived from the package identity and the object's
role rather than generated at random, so regenerating a project keeps every
identifier and Xcode keeps treating it as the same project.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

ID_PREFIX = "CA60"
ID_LENGTH = 24


def package_seed(package_id: str) -> bytes:
    """Derive the identifier seed for a package from its unique id string."""
    return hashlib.sha256(package_id.encode('utf-8')).digest()


def allocate(seed: bytes, namespace: str, name: str) -> str:
    """
    Generate a deterministic identifier for an object in a project file.

    The same seed/namespace/name combination always produces the same
    identifier. Objects of one package share the seed; the namespace says
    what kind of object it is and the name which one.

    Args:
        seed: Package seed from package_seed()
        namespace: Object category (e.g. a file type or '<config-list>')
        name: Object name within the category

    Returns:
        An identifier string like 'CA60' followed by 20 uppercase hex digits

    Example:
        >>> allocate(package_seed('foo 0.1.0'), '', 'Products')
        'CA60...'  # deterministic result
    """
    digest = hashlib.sha256(seed)
    digest.update(namespace.encode('utf-8'))
    # Separator keeps ('ab', 'c') and ('a', 'bc') apart
    digest.update(b'\0')
    digest.update(name.encode('utf-8'))

    identifier = ID_PREFIX + digest.hexdigest().upper()
    return identifier[:ID_LENGTH]


@dataclass(frozen=True)
class IdAllocator:
    """Identifier allocator bound to one package's seed."""
    seed: bytes

    @classmethod
    def for_package(cls, package_id: str) -> IdAllocator:
        return cls(package_seed(package_id))

    def __call__(self, namespace: str, name: str) -> str:
        return allocate(self.seed, namespace, name)
