"""
Content stamp for the appcache manifest.

Every file is hashed with SHA-1 and base64-encoded, one file at a time in
enumeration order. The stamp is the SHA-1 of the comma-joined per-file
digests, so it changes when any file changes or when the order changes.
"""
import asyncio
import base64
import hashlib
import logging
from pathlib import Path
from typing import List, Sequence, Union

from .errors import ReadError, ValidationError

CHUNK_SIZE = 65536


def _b64(digest: bytes) -> str:
    return base64.b64encode(digest).decode("ascii")


async def digest_file(path: Union[str, Path], chunk_size: int = CHUNK_SIZE) -> str:
    """Streams a file through SHA-1 and returns the base64 digest."""
    sha1 = hashlib.sha1()
    try:
        with open(path, "rb") as f:
            while True:
                chunk = await asyncio.to_thread(f.read, chunk_size)
                if not chunk:
                    break
                sha1.update(chunk)
    except OSError as e:
        raise ReadError(f"Failed to hash {path}: {e}") from e
    return _b64(sha1.digest())


def combine_digests(digests: Sequence[str]) -> str:
    """Master digest over per-file digests, in the given order."""
    sha1 = hashlib.sha1(",".join(digests).encode("utf-8"))
    return _b64(sha1.digest())


async def generate_digest(files: Sequence[Union[str, Path]]) -> str:
    """
    Hashes files strictly in sequence and returns the master digest.

    File i+1 is not opened until the digest of file i has resolved.
    A failure on any file aborts the chain and the digests collected so far
    are dropped with it.
    """
    if not files:
        raise ValidationError("Cannot compute a stamp for an empty file list")

    digests: List[str] = []
    for path in files:
        digests.append(await digest_file(path))
        logging.debug(f"Digest {digests[-1]} for {path}")

    stamp = combine_digests(digests)
    logging.info(f"Computed stamp {stamp} over {len(digests)} files.")
    return stamp
