"""
Tests for the similarity engine.
"""

import pytest

from nexmind.core.similarity import (
    average_similarity,
    cosine_similarity,
    find_note_clusters,
    find_similar_notes,
    similarity_matrix,
)
from nexmind.utils.exceptions import VectorDimensionError


@pytest.mark.unit
class TestCosineSimilarity:
    """Test pairwise cosine similarity."""

    def test_identical_vectors(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_symmetric(self):
        a, b = [0.3, 0.1, 0.9], [0.5, 0.7, 0.2]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    def test_orthogonal(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite(self):
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)

    def test_zero_vector(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0
        assert cosine_similarity([0.0, 0.0], [0.0, 0.0]) == 0.0

    def test_dimension_mismatch_raises(self):
        with pytest.raises(VectorDimensionError):
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])

    def test_bounded(self):
        value = cosine_similarity([1e-9, 3.0], [1e-9, 3.0])
        assert -1.0 <= value <= 1.0


@pytest.mark.unit
class TestSimilarityMatrix:
    def test_shape_and_diagonal(self):
        matrix = similarity_matrix([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])

        assert matrix.shape == (3, 3)
        assert matrix[0][0] == pytest.approx(1.0)
        assert matrix[0][1] == pytest.approx(0.0)

    def test_empty(self):
        assert similarity_matrix([]).shape == (0, 0)

    def test_mismatched_dimensions(self):
        with pytest.raises(VectorDimensionError):
            similarity_matrix([[1.0], [1.0, 0.0]])


@pytest.mark.unit
class TestFindSimilarNotes:
    def test_ranked_and_limited(self, make_note):
        target = make_note("target", embedding=[1.0, 0.0])
        close = make_note("close", embedding=[0.9, 0.1])
        medium = make_note("medium", embedding=[0.5, 0.5])
        far = make_note("far", embedding=[0.0, 1.0])

        results = find_similar_notes(target, [far, target, medium, close], top_n=2)

        assert [n.content for n, _ in results] == ["close", "medium"]
        assert results[0][1] > results[1][1]

    def test_skips_notes_without_vector(self, make_note):
        target = make_note("target", embedding=[1.0, 0.0])
        results = find_similar_notes(target, [make_note("plain")])
        assert results == []

    def test_target_without_vector(self, make_note):
        assert find_similar_notes(make_note("x"), [make_note("y", embedding=[1.0])]) == []


@pytest.mark.unit
class TestFindNoteClusters:
    def test_greedy_clusters(self, make_note):
        a = make_note("a", embedding=[1.0, 0.0, 0.0])
        b = make_note("b", embedding=[0.95, 0.05, 0.0])
        c = make_note("c", embedding=[0.0, 1.0, 0.0])
        d = make_note("d", embedding=[0.0, 0.97, 0.03])
        lonely = make_note("e", embedding=[0.0, 0.0, 1.0])

        clusters = find_note_clusters([a, b, c, d, lonely], threshold=0.9)

        assert [[n.content for n in cluster] for cluster in clusters] == [["a", "b"], ["c", "d"]]

    def test_not_transitive(self, make_note):
        """Members join the seed, not each other."""
        seed = make_note("seed", embedding=[1.0, 0.0])
        near = make_note("near", embedding=[0.8, 0.6])  # cos 0.8 to seed
        chained = make_note("chained", embedding=[0.28, 0.96])  # cos 0.28 to seed, 0.8 to near

        clusters = find_note_clusters([seed, near, chained], threshold=0.75)

        assert [[n.content for n in cluster] for cluster in clusters] == [["seed", "near"]]

    def test_too_few_notes(self, make_note):
        assert find_note_clusters([make_note("a", embedding=[1.0])]) == []


@pytest.mark.unit
class TestAverageSimilarity:
    def test_mean_of_pairs(self, make_note):
        notes = [
            make_note("a", embedding=[1.0, 0.0]),
            make_note("b", embedding=[1.0, 0.0]),
            make_note("c", embedding=[0.0, 1.0]),
        ]
        # pairs: 1.0, 0.0, 0.0
        assert average_similarity(notes) == pytest.approx(1 / 3)

    def test_fewer_than_two(self, make_note):
        assert average_similarity([make_note("a", embedding=[1.0])]) == 0.0
