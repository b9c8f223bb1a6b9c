"""Block content hashing for StarLedger."""

import hashlib
import json
from typing import Any, Dict, Union


class HashChain:
    """Digest provider binding each block to its own fields.

    The digest covers the canonical JSON of every block field except
    ``hash``, so a block can always be re-hashed and compared with what it
    stores.
    """

    SUPPORTED_ALGORITHMS = {
        "sha256": hashlib.sha256,
        "sha512": hashlib.sha512,
        "sha3_256": hashlib.sha3_256,
        "sha3_512": hashlib.sha3_512,
    }

    def __init__(self, algorithm: str = "sha256"):
        if algorithm not in self.SUPPORTED_ALGORITHMS:
            raise ValueError(
                f"Unsupported algorithm: {algorithm}. "
                f"Supported: {list(self.SUPPORTED_ALGORITHMS)}"
            )
        self.algorithm = algorithm
        self._digest = self.SUPPORTED_ALGORITHMS[algorithm]

    def hash_bytes(self, data: bytes) -> str:
        return self._digest(data).hexdigest()

    def calculate_hash(self, block: Union[Any, Dict[str, Any]]) -> str:
        """Digest of a block or its ``to_dict()`` form, ``hash`` excluded."""
        fields = block.to_dict() if hasattr(block, "to_dict") else block
        content = {name: value for name, value in fields.items() if name != "hash"}
        canonical = json.dumps(content, sort_keys=True, separators=(',', ':'))
        return self.hash_bytes(canonical.encode('utf-8'))

    def verify_hash(self, block: Any, expected_hash: str) -> bool:
        """True if the block's fields still hash to ``expected_hash``."""
        return self.calculate_hash(block) == expected_hash


DEFAULT_HASH_CHAIN = HashChain("sha256")
