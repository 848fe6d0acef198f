from __future__ import annotations

import hashlib

DEFAULT_HASH_ALGORITHM = "md5"


def compute_bytes_digest(data: bytes, alg: str = DEFAULT_HASH_ALGORITHM) -> str:
    h = hashlib.new(alg)
    h.update(data)
    return h.hexdigest()


def is_supported_algorithm(alg: str) -> bool:
    return alg.lower() in hashlib.algorithms_available
