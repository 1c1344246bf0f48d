"""
Module: package

Purpose:
    In-memory exchange package: an ordered set of named byte blobs plus a
    derived index from per-quiz hash identifiers to their item documents.
    Reading/writing the zip container is left to the caller; this is the
    plain structure the codec accepts and returns.

Key Classes:
    - Package: Ordered path -> bytes container
    - ImportedAsset: An asset blob with its package path and mime type

Used By:
    - exchange.package_build, exchange.package_parse
    - exchange.assets, exchange.normalize
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Mapping, Optional, Tuple

MANIFEST_PATH = "imsmanifest.xml"
WEB_RESOURCES_DIR = "web_resources"


@dataclass(frozen=True)
class ImportedAsset:
    """
    An asset blob carried by a package (images referenced from prompts).

    Attributes:
        zip_path: Path inside the package, e.g. "web_resources/img/a.png"
        data: Raw bytes
        mime: Mime type
        suggested_name: Basename used by "[image: <name>]" placeholders
    """

    zip_path: str
    data: bytes
    mime: str
    suggested_name: str

    def __post_init__(self) -> None:
        if not self.zip_path:
            raise ValueError("zip_path must not be empty")

    def __repr__(self) -> str:
        return f"ImportedAsset({self.zip_path!r}, {self.mime}, {len(self.data)} bytes)"


class Package:
    """
    Ordered collection of named blobs.

    Insertion order is preserved and re-adding a path replaces its bytes in
    place. ``quiz_index`` maps a quiz hash identifier to the path of its
    item document. The package builder fills it in; packages loaded from
    elsewhere are resolved through their manifest instead.
    """

    def __init__(self, entries: Optional[Mapping[str, bytes]] = None):
        self._entries: Dict[str, bytes] = {}
        self.quiz_index: Dict[str, str] = {}
        for path, data in (entries or {}).items():
            self.add(path, data)

    def add(self, path: str, data: bytes | str) -> None:
        """Add a blob; str data is encoded as UTF-8."""
        if not path:
            raise ValueError("path must not be empty")
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._entries[path] = bytes(data)

    def get(self, path: str) -> Optional[bytes]:
        return self._entries.get(path)

    def read_text(self, path: str) -> Optional[str]:
        data = self._entries.get(path)
        return data.decode("utf-8") if data is not None else None

    @property
    def paths(self) -> Tuple[str, ...]:
        return tuple(self._entries)

    def items(self) -> Iterator[Tuple[str, bytes]]:
        return iter(self._entries.items())

    def as_dict(self) -> Dict[str, bytes]:
        return dict(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Package(entries={len(self._entries)}, quizzes={len(self.quiz_index)})"
