"""Version control capability interface."""
from pathlib import Path
from typing import Optional, Protocol, Set


class VersionControlClient(Protocol):
    """Operations the mirror cache needs from a version control engine.

    Implementations raise GitOperationError (or a subclass) when the
    underlying engine reports failure.
    """

    def clone(self, remote: str, destination: Path) -> None:
        """Create a full clone of remote, including all tags, at destination."""
        ...

    def fetch(self, mirror: Path) -> None:
        """Update an existing mirror so its tags and HEAD match the remote."""
        ...

    def list_tags(self, mirror: Path) -> Set[str]:
        """Return every tag name known to the mirror."""
        ...

    def resolve_ref(self, mirror: Path, ref: str) -> Optional[str]:
        """Return the commit id ref points to, or None if it is unknown."""
        ...

    def show_file(self, mirror: Path, ref: str, path: str) -> bytes:
        """Return the content of path at ref.

        Raises PathNotFoundError if path does not exist at ref.
        """
        ...

    def checkout(self, mirror: Path, ref: str, destination: Path) -> None:
        """Write the full tree of ref into destination."""
        ...

    def is_mirror(self, path: Path) -> bool:
        """Check whether path holds a usable mirror."""
        ...

    def marker_path(self, mirror: Path) -> Path:
        """Path of the file whose mtime records the last refresh."""
        ...
