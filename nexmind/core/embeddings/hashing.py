"""
Deterministic hash embedder.

Works offline and without any model: every word is hashed into one of a
fixed number of slots, weighted by its position, and the vector is L2
normalized. Similar wording yields similar vectors; meaning does not.
"""

import numpy as np

from nexmind.core.embeddings.base import Embedder

DEFAULT_DIMENSION = 128


def word_hash(word: str) -> int:
    """
    32-bit signed rolling hash (``h = h * 31 + code_unit``) over UTF-16 code units.

    Matches the hash used by notes embedded in earlier versions of the app,
    so stored vectors stay comparable.
    """
    h = 0
    data = word.encode("utf-16-le")
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code_unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


class HashEmbedder(Embedder):
    """Bag-of-words hash embedder producing unit vectors."""

    def __init__(self, dimension: int = DEFAULT_DIMENSION):
        """
        Initialize hash embedder.

        Args:
            dimension: Vector length (number of hash slots)
        """
        self.dimension = dimension

    def embed_sync(self, text: str) -> list[float]:
        """Embed without awaiting; empty text gives the zero vector."""
        vector = np.zeros(self.dimension, dtype=np.float64)

        for position, word in enumerate(text.lower().split()):
            slot = abs(word_hash(word)) % self.dimension
            vector[slot] += 1.0 / (position + 1)

        magnitude = np.linalg.norm(vector)
        if magnitude > 0:
            vector = vector / magnitude
        return vector.tolist()

    async def embed(self, text: str, **kwargs) -> list[float]:
        return self.embed_sync(text)

    async def get_dimension(self) -> int:
        return self.dimension
