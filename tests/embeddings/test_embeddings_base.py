"""
Tests for the embedder base class and the hash embedder.
"""

import math

import pytest

from nexmind.core.embeddings import Embedder, HashEmbedder, word_hash
from nexmind.core.similarity import cosine_similarity


class CountingEmbedder(Embedder):
    """Minimal embedder for exercising base class defaults."""

    def __init__(self):
        self.calls = []

    async def embed(self, text: str, **kwargs) -> list[float]:
        self.calls.append(text)
        return [float(len(text)), 1.0, 0.0]


@pytest.mark.unit
@pytest.mark.asyncio
class TestEmbedderBase:
    async def test_batch_embed_defaults_to_sequential(self):
        embedder = CountingEmbedder()

        vectors = await embedder.batch_embed(["a", "bb"])

        assert vectors == [[1.0, 1.0, 0.0], [2.0, 1.0, 0.0]]
        assert embedder.calls == ["a", "bb"]

    async def test_get_dimension_embeds_sample(self):
        assert await CountingEmbedder().get_dimension() == 3

    async def test_name_and_close(self):
        embedder = CountingEmbedder()
        assert embedder.name == "CountingEmbedder"
        await embedder.close()


@pytest.mark.unit
class TestWordHash:
    """Rolling hash must stay stable across releases."""

    def test_single_character(self):
        assert word_hash("a") == 97

    def test_two_characters(self):
        assert word_hash("ab") == 97 * 31 + 98

    def test_wraps_to_signed_32_bit(self):
        value = word_hash("supercalifragilisticexpialidocious")
        assert -(2**31) <= value < 2**31

    def test_non_ascii(self):
        assert word_hash("ü") == 252


@pytest.mark.unit
@pytest.mark.asyncio
class TestHashEmbedder:
    """Test the offline hash embedder."""

    async def test_dimension(self):
        embedder = HashEmbedder()
        vector = await embedder.embed("Maria morgen anrufen")

        assert len(vector) == 128
        assert await embedder.get_dimension() == 128

    async def test_unit_length(self):
        vector = await HashEmbedder().embed("Maria morgen anrufen")
        assert math.isclose(math.sqrt(sum(v * v for v in vector)), 1.0)

    async def test_empty_text_is_zero_vector(self):
        vector = await HashEmbedder().embed("")
        assert vector == [0.0] * 128

    async def test_single_word_slot(self):
        vector = await HashEmbedder().embed("a")
        assert vector[97] == pytest.approx(1.0)
        assert sum(vector) == pytest.approx(1.0)

    async def test_deterministic_and_case_insensitive(self):
        embedder = HashEmbedder()
        assert await embedder.embed("Milch kaufen") == await embedder.embed("milch KAUFEN")

    async def test_similar_wording_scores_higher(self):
        embedder = HashEmbedder()
        base = await embedder.embed("Maria wegen Projekt anrufen")
        close = await embedder.embed("Maria wegen Projekt anrufen bitte")
        far = await embedder.embed("Milch und Brot kaufen")

        assert cosine_similarity(base, close) > cosine_similarity(base, far)

    async def test_custom_dimension(self):
        vector = await HashEmbedder(dimension=16).embed("hello world")
        assert len(vector) == 16
