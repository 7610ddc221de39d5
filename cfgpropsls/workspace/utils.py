import hashlib
from pathlib import Path

from pygls.uris import to_fs_path


def calculate_file_hash(file_path: Path, chunk_size: int = 8192) -> str:
    """Calculate SHA256 hash of file content."""
    sha256 = hashlib.sha256()

    with open(file_path, "rb") as f:
        while chunk := f.read(chunk_size):
            sha256.update(chunk)

    return sha256.hexdigest()


def uri_to_path(uri: str) -> Path | None:
    """Convert a file:// URI sent by the client into a filesystem path."""
    fs_path = to_fs_path(uri)
    return Path(fs_path) if fs_path else None
