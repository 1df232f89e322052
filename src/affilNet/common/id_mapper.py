"""
ID mapping between member IDs and NetworkIt node indices.

NetworkIt graphs address vertices by consecutive integers starting at 0,
while affiliation data identifies members by arbitrary strings. IDMapper
keeps the two in sync for one window's graph.
"""

from typing import Any, Dict, Iterable, List


class IDMapper:
    """
    Bidirectional mapping between member IDs and internal node indices.

    Attributes
    ----------
    original_to_internal : Dict[Any, int]
        Maps member IDs to NetworkIt node indices (0, 1, 2, ...)
    internal_to_original : Dict[int, Any]
        Maps NetworkIt node indices back to member IDs

    Examples
    --------
    >>> mapper = IDMapper.from_ids(["M2", "M1"])
    >>> mapper.get_internal("M1")
    0
    >>> mapper.get_original(1)
    'M2'
    """

    def __init__(self) -> None:
        self.original_to_internal: Dict[Any, int] = {}
        self.internal_to_original: Dict[int, Any] = {}

    @classmethod
    def from_ids(cls, original_ids: Iterable[Any]) -> 'IDMapper':
        """
        Build a mapper over the unique IDs, sorted by their string form so
        that the same vertex set always gets the same indices.
        """
        mapper = cls()
        for internal_id, original_id in enumerate(sorted(set(original_ids), key=str)):
            mapper.add_mapping(original_id, internal_id)
        return mapper

    def add_mapping(self, original_id: Any, internal_id: int) -> None:
        """
        Register one mapping.

        Raises
        ------
        ValueError
            If either ID is already mapped to something else
        """
        existing = self.original_to_internal.get(original_id)
        if existing is not None and existing != internal_id:
            raise ValueError(
                f"Original ID '{original_id}' already mapped to internal ID {existing}"
            )
        existing_original = self.internal_to_original.get(internal_id)
        if existing_original is not None and existing_original != original_id:
            raise ValueError(
                f"Internal ID {internal_id} already mapped to original ID '{existing_original}'"
            )

        self.original_to_internal[original_id] = internal_id
        self.internal_to_original[internal_id] = original_id

    def get_internal(self, original_id: Any) -> int:
        """
        Get the node index of a member.

        Raises
        ------
        KeyError
            If the member is not part of the graph
        """
        try:
            return self.original_to_internal[original_id]
        except KeyError:
            raise KeyError(f"Original ID '{original_id}' not found in mapping")

    def get_original(self, internal_id: int) -> Any:
        """
        Get the member ID of a node index.

        Raises
        ------
        KeyError
            If the index is not mapped
        """
        try:
            return self.internal_to_original[internal_id]
        except KeyError:
            raise KeyError(f"Internal ID {internal_id} not found in mapping")

    def originals(self) -> List[Any]:
        """Member IDs in node index order."""
        return [self.internal_to_original[i] for i in range(self.size())]

    def size(self) -> int:
        return len(self.original_to_internal)

    def __repr__(self) -> str:
        return f"IDMapper(size={self.size()})"
