"""Similarity engine over note embeddings."""
from nexmind.core.similarity.engine import (
    average_similarity,
    cosine_similarity,
    find_note_clusters,
    find_similar_notes,
    similarity_matrix,
)

__all__ = [
    "cosine_similarity",
    "similarity_matrix",
    "find_similar_notes",
    "find_note_clusters",
    "average_similarity",
]
