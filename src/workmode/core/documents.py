"""Open documents and unsaved content collection.

The host (TUI, editor bridge, tests) keeps a DocumentRegistry of the
buffers it has open. At backup time every dirty or untitled buffer is
materialized as an UnsavedEntry holding its current text.
"""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path, PurePath

from workmode.core.workspace import Workspace

FILE_SCHEME = "file"
UNTITLED_SCHEME = "untitled"
UNSAVED_PREFIX = "UNSAVED"
DEFAULT_UNTITLED_NAME = "untitled.txt"

VALID_SCHEMES = {FILE_SCHEME, UNTITLED_SCHEME}


@dataclass(eq=False)
class Document:
    """An open text buffer.

    Attributes:
        scheme: "file" for disk-backed buffers, "untitled" for new ones
        path: Disk location for file buffers, None for untitled ones
        text: Current in-memory content
        dirty: Whether text differs from what is saved on disk
        name: Display name, used for untitled buffers
    """

    scheme: str
    path: Path | None = None
    text: str = ""
    dirty: bool = False
    name: str = ""

    def __post_init__(self) -> None:
        if self.scheme not in VALID_SCHEMES:
            raise ValueError(
                f"Invalid scheme: {self.scheme}. Must be one of {VALID_SCHEMES}"
            )
        if self.scheme == FILE_SCHEME and self.path is None:
            raise ValueError("file documents need a path")

    @property
    def is_untitled(self) -> bool:
        return self.scheme == UNTITLED_SCHEME

    @classmethod
    def from_file(cls, path: Path) -> "Document":
        """Open a disk-backed document with its saved content."""
        return cls(scheme=FILE_SCHEME, path=path, text=path.read_text(encoding="utf-8"))

    @classmethod
    def untitled(cls, name: str = "", text: str = "") -> "Document":
        return cls(scheme=UNTITLED_SCHEME, name=name, text=text)


@dataclass(frozen=True)
class UnsavedEntry:
    """In-memory content destined for an archive."""

    archive_path: str
    content: bytes


class Subscription:
    """Handle returned by a subscription; dispose() unsubscribes."""

    def __init__(self, dispose: Callable[[], None]) -> None:
        self._dispose: Callable[[], None] | None = dispose

    def dispose(self) -> None:
        if self._dispose is not None:
            self._dispose()
            self._dispose = None


DocumentListener = Callable[[Document], None]


class DocumentRegistry:
    """The set of documents a host currently has open."""

    def __init__(self) -> None:
        self._documents: list[Document] = []
        self._listeners: list[DocumentListener] = []

    @property
    def documents(self) -> tuple[Document, ...]:
        return tuple(self._documents)

    def open(self, document: Document) -> Document:
        if document not in self._documents:
            self._documents.append(document)
        return document

    def close(self, document: Document) -> None:
        if document in self._documents:
            self._documents.remove(document)

    def edit(self, document: Document, text: str) -> None:
        """Replace a document's text and fire the document-changed event."""
        document.text = text
        if not document.is_untitled:
            document.dirty = True
        for listener in list(self._listeners):
            listener(document)

    def save(self, document: Document) -> None:
        """Write a file document to disk and mark it clean."""
        if document.is_untitled:
            raise ValueError("untitled documents have no location to save to")
        document.path.write_text(document.text, encoding="utf-8")
        document.dirty = False

    def on_did_change(self, listener: DocumentListener) -> Subscription:
        """Subscribe to document-changed events."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Subscription(unsubscribe)


def _untitled_archive_path(document: Document) -> str:
    # Names may carry either separator
    name = PurePath(document.name.replace("\\", "/")).name if document.name else ""
    return f"{UNSAVED_PREFIX}/{name or DEFAULT_UNTITLED_NAME}"


def encode_text(text: str) -> bytes:
    """Encode buffer text as UTF-8, replacing lone surrogates with U+FFFD."""
    # Surrogate pairs are joined, unpaired halves become the replacement char
    utf16 = text.encode("utf-16-le", errors="surrogatepass")
    return utf16.decode("utf-16-le", errors="replace").encode("utf-8")


def collect_unsaved(
    registry: DocumentRegistry,
    workspace: Workspace,
    is_excluded: Callable[[str], bool],
) -> list[UnsavedEntry]:
    """Materialize dirty and untitled documents as archive entries.

    File-backed documents keep their workspace-relative path, so the
    in-memory text takes the place of the on-disk copy in the archive.
    Untitled documents go under UNSAVED/ and are never filtered.

    Args:
        registry: Currently open documents.
        workspace: Workspace used to relativize file paths.
        is_excluded: Exclusion predicate for relative paths.

    Returns:
        One entry per collected document, text encoded as UTF-8 with
        lone surrogates replaced by U+FFFD.
    """
    entries: list[UnsavedEntry] = []
    for document in registry.documents:
        if not document.dirty and not document.is_untitled:
            continue

        if document.is_untitled:
            archive_path = _untitled_archive_path(document)
        else:
            archive_path = workspace.relative_path(document.path)
            if archive_path is None or is_excluded(archive_path):
                continue

        entries.append(UnsavedEntry(archive_path, encode_text(document.text)))
    return entries
