"""
In-memory object model of an Xcode project file.

A project file is a flat table of objects keyed by identifier, where objects
refer to each other by identifier. Values are plain Python data: str, int,
lists, dicts and PBXRef for references.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional


@dataclass(frozen=True)
class PBXRef:
    identifier: str
    comment: Optional[str] = None


@dataclass
class ProjectObject:
    identifier: str
    isa: str
    comment: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=OrderedDict)

    def ref(self) -> PBXRef:
        return PBXRef(self.identifier, self.comment)


class ObjectGraph:
    """All objects of one generated project plus the root object pointer."""

    def __init__(self) -> None:
        self._objects: Dict[str, ProjectObject] = OrderedDict()
        self.root: Optional[str] = None

    def add(self, identifier: str, isa: str, comment: Optional[str] = None, **fields: Any) -> PBXRef:
        """
        Add an object and return a reference to it.

        Raises:
            ValueError: If the identifier is already taken. Identifiers are
                hashes, so this means two objects were derived from the same
                inputs or the hash collided.
        """
        if identifier in self._objects:
            raise ValueError(f"Duplicate object identifier: {identifier}")
        obj = ProjectObject(identifier, isa, comment, OrderedDict(fields))
        self._objects[identifier] = obj
        return obj.ref()

    def __getitem__(self, identifier: str) -> ProjectObject:
        return self._objects[identifier]

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._objects

    def __iter__(self) -> Iterator[ProjectObject]:
        return iter(self._objects.values())

    def __len__(self) -> int:
        return len(self._objects)

    def of_type(self, isa: str) -> List[ProjectObject]:
        return [obj for obj in self._objects.values() if obj.isa == isa]

    def comment_for(self, identifier: str) -> Optional[str]:
        obj = self._objects.get(identifier)
        return obj.comment if obj else None

    def resolve(self, ref: PBXRef) -> ProjectObject:
        return self._objects[ref.identifier]
