"""Content digests for Twig objects."""

import hashlib

HASH_LENGTH = 40
HEX_DIGITS = '0123456789abcdef'


def hash_object(data: bytes) -> str:
    """
    Compute the SHA-1 digest of raw bytes.

    Args:
        data: Bytes to hash

    Returns:
        40-character hex string
    """
    return hashlib.sha1(data).hexdigest()


def frame_object(kind: str, data: bytes) -> bytes:
    """Prefix content with the ``<kind> <size>\\0`` object header."""
    return f"{kind} {len(data)}\0".encode() + data


def digest_object(kind: str, data: bytes) -> str:
    """
    Compute the identity of an object of the given kind.

    Args:
        kind: Object kind name (blob, tree, commit)
        data: Serialized object content

    Returns:
        40-character hex string
    """
    return hash_object(frame_object(kind, data))


def hash_file(filepath) -> str:
    """Compute the blob identity of a file's contents."""
    with open(filepath, 'rb') as f:
        return digest_object('blob', f.read())


def is_object_hash(text: str) -> bool:
    """Whether text has the shape of a full object hash."""
    return len(text) == HASH_LENGTH and all(c in HEX_DIGITS for c in text)
