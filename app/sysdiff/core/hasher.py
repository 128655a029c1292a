"""Content hashing for live and repository files.

Both pacman and dpkg record the md5 of pristine backup files, so md5 is
the digest used on every side of every comparison.
"""

import hashlib

CHUNK_SIZE = 64 * 1024


class ContentHasher:
    """Streams file bytes through a content digest.

    Errors are signalled with the built-in exception classes:
    FileNotFoundError when the path does not exist, PermissionError when
    read access is refused, and any other OSError for everything else.
    Callers decide which of those are fatal.

    Args:
        algorithm: hashlib algorithm name.
        chunk_size: Read size in bytes.
    """

    def __init__(self, algorithm: str = "md5", chunk_size: int = CHUNK_SIZE) -> None:
        # Fail fast on an unknown algorithm
        hashlib.new(algorithm)
        self.algorithm = algorithm
        self.chunk_size = chunk_size

    def hash(self, path: str) -> str:
        """Return the hex digest of the file at path.

        Symbolic links are followed; a dangling link raises FileNotFoundError.

        Raises:
            FileNotFoundError: If the path does not exist.
            PermissionError: If the file cannot be opened for reading.
            OSError: For any other read failure.
        """
        h = hashlib.new(self.algorithm)
        with open(path, "rb") as f:
            while True:
                chunk = f.read(self.chunk_size)
                if not chunk:
                    break
                h.update(chunk)
        return h.hexdigest()
