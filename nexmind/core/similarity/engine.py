"""
Vector similarity over note embeddings.

Pairwise scores use numpy directly; batch work (clusters, matrices) goes
through scikit-learn's ``cosine_similarity``. Comparing vectors of
different length is always an error, never a silent zero.
"""

from collections.abc import Sequence

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as pairwise_cosine

from nexmind.models.note import Note
from nexmind.utils.exceptions import VectorDimensionError


def _check_dimensions(vectors: Sequence[Sequence[float]]) -> None:
    lengths = {len(v) for v in vectors}
    if len(lengths) > 1:
        raise VectorDimensionError(
            "Embeddings have mismatched dimensions", context={"dimensions": sorted(lengths)}
        )


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Args:
        a: First vector
        b: Second vector

    Returns:
        Similarity in [-1, 1]; 0.0 when either vector has zero magnitude

    Raises:
        VectorDimensionError: If the vectors differ in length
    """
    if len(a) != len(b):
        raise VectorDimensionError(
            f"Vectors must have the same dimension ({len(a)} != {len(b)})",
            context={"left": len(a), "right": len(b)},
        )

    vec_a = np.asarray(a, dtype=np.float64)
    vec_b = np.asarray(b, dtype=np.float64)

    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    score = float(np.dot(vec_a, vec_b) / (norm_a * norm_b))
    # Rounding can push identical vectors slightly past 1
    return max(-1.0, min(1.0, score))


def similarity_matrix(vectors: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Pairwise cosine similarity matrix.

    Zero vectors produce 0 rows/columns.

    Raises:
        VectorDimensionError: If the vectors differ in length
    """
    if not vectors:
        return np.zeros((0, 0))
    _check_dimensions(vectors)
    return np.clip(pairwise_cosine(np.asarray(vectors, dtype=np.float64)), -1.0, 1.0)


def find_similar_notes(target: Note, candidates: list[Note], top_n: int = 3) -> list[tuple[Note, float]]:
    """
    Most similar notes to ``target``.

    Args:
        target: Reference note
        candidates: Notes to rank (the target itself is skipped)
        top_n: Maximum number of results

    Returns:
        (note, similarity) pairs, highest similarity first; empty when the
        target has no embedding
    """
    if not target.embedding:
        return []

    scored = [
        (note, cosine_similarity(target.embedding, note.embedding))
        for note in candidates
        if note.id != target.id and note.embedding
    ]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:top_n]


def find_note_clusters(notes: list[Note], threshold: float = 0.7) -> list[list[Note]]:
    """
    Group notes by similarity in one greedy pass.

    Each unassigned note seeds a cluster and pulls in every other unassigned
    note within ``threshold`` of the seed. Membership depends on input order
    and is not transitive: two members of a cluster may be far apart.

    Returns:
        Clusters with more than one note
    """
    embedded = [n for n in notes if n.embedding]
    if len(embedded) < 2:
        return []

    matrix = similarity_matrix([n.embedding for n in embedded])
    clusters: list[list[Note]] = []
    assigned: set[int] = set()

    for i, seed in enumerate(embedded):
        if i in assigned:
            continue
        assigned.add(i)
        cluster = [seed]

        for j, other in enumerate(embedded):
            if j not in assigned and matrix[i][j] >= threshold:
                cluster.append(other)
                assigned.add(j)

        if len(cluster) > 1:
            clusters.append(cluster)

    return clusters


def average_similarity(notes: list[Note]) -> float:
    """Mean pairwise similarity of embedded notes (0.0 with fewer than two)."""
    embedded = [n for n in notes if n.embedding]
    if len(embedded) < 2:
        return 0.0

    matrix = similarity_matrix([n.embedding for n in embedded])
    upper = matrix[np.triu_indices(len(embedded), k=1)]
    return float(upper.mean())
