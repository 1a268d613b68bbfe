"""
Tests for the knowledge graph builder.
"""

import pytest

from nexmind.core.graph.builder import (
    MENTIONS_STRENGTH,
    PROJECT_STRENGTH,
    TOPIC_STRENGTH,
    add_entity_nodes,
    add_note,
    add_similarity_edges,
    add_topic_nodes,
    build_from_notes,
    entities_for_note,
    entity_node_id,
    index_note,
    normalize_label,
    note_node_id,
    remove_note,
    similar_notes_from_graph,
    stats,
    top_entities,
)
from nexmind.models.graph import EdgeType, GraphNodeType, KnowledgeGraph
from nexmind.utils.exceptions import VectorDimensionError


@pytest.mark.unit
class TestNodeIds:
    def test_normalize_label(self):
        assert normalize_label("  Website  Relaunch ") == "website_relaunch"

    def test_entity_node_id(self):
        assert entity_node_id(GraphNodeType.PERSON, "Maria") == "person_maria"

    def test_note_node_id(self):
        assert note_node_id("nt_1") == "note_nt_1"


@pytest.mark.unit
class TestAddNodes:
    """Test incremental node creation."""

    def test_add_note_label_and_metadata(self, make_note):
        graph = KnowledgeGraph()
        note = make_note("x" * 80, note_id="nt_long")

        node = add_note(graph, note)

        assert node.id == "note_nt_long"
        assert node.label == "x" * 50 + "..."
        assert node.metadata["note_id"] == "nt_long"
        assert node.metadata["category"] == "info"

    def test_person_mentioned_by_two_notes(self, make_note):
        """One person node with count 2 and two mentions edges."""
        graph = KnowledgeGraph()
        first = make_note("Maria anrufen", persons=["Maria"])
        second = make_note("Mit maria essen", persons=["maria"])

        for note in (first, second):
            add_note(graph, note)
            add_entity_nodes(graph, note)

        persons = graph.nodes_of_type(GraphNodeType.PERSON)
        assert len(persons) == 1
        assert persons[0].count == 2
        mentions = graph.edges_to("person_maria", EdgeType.MENTIONS)
        assert len(mentions) == 2
        assert all(e.strength == MENTIONS_STRENGTH for e in mentions)

    def test_reindexing_does_not_inflate_count(self, make_note):
        graph = KnowledgeGraph()
        note = make_note("Maria anrufen", persons=["Maria"])

        add_entity_nodes(graph, note)
        add_entity_nodes(graph, note)

        assert graph.get_node("person_maria").count == 1

    def test_places_and_projects(self, make_note):
        graph = KnowledgeGraph()
        note = make_note("x", places=["Berlin"], projects=["Website"])

        add_entity_nodes(graph, note)

        assert graph.get_node("place_berlin").type == GraphNodeType.PLACE
        project_edges = graph.edges_to("project_website")
        assert project_edges[0].type == EdgeType.PROJECT_OF
        assert project_edges[0].strength == PROJECT_STRENGTH

    def test_topics(self, make_note):
        graph = KnowledgeGraph()
        note = make_note("x", topics=["Arbeit"])

        add_topic_nodes(graph, note)
        add_topic_nodes(graph, note, ["Finanzen"])

        topic_edges = graph.edges_from(note_node_id(note.id), EdgeType.TOPIC_OF)
        assert {e.target for e in topic_edges} == {"topic_arbeit", "topic_finanzen"}
        assert all(e.strength == TOPIC_STRENGTH for e in topic_edges)

    def test_blank_entities_ignored(self, make_note):
        graph = KnowledgeGraph()
        add_entity_nodes(graph, make_note("x", persons=["  ", ""]))
        assert graph.is_empty()


@pytest.mark.unit
class TestSimilarityEdges:
    def test_above_threshold_creates_two_edges(self, make_note):
        graph = KnowledgeGraph()
        a = make_note("a", embedding=[1.0, 0.0])
        b = make_note("b", embedding=[0.8, 0.6])  # cos 0.8

        found = add_similarity_edges(graph, a, [a, b], threshold=0.6)

        assert found == 1
        edges = [e for e in graph.edges if e.type == EdgeType.SIMILAR_TO]
        assert len(edges) == 2
        assert {(e.source, e.target) for e in edges} == {
            (note_node_id(a.id), note_node_id(b.id)),
            (note_node_id(b.id), note_node_id(a.id)),
        }
        assert all(e.strength == pytest.approx(0.8) for e in edges)

    def test_below_threshold_creates_none(self, make_note):
        graph = KnowledgeGraph()
        a = make_note("a", embedding=[1.0, 0.0])
        b = make_note("b", embedding=[0.5, 0.866])  # cos 0.5

        assert add_similarity_edges(graph, a, [a, b], threshold=0.6) == 0
        assert graph.edges == []

    def test_note_without_vector(self, make_note):
        graph = KnowledgeGraph()
        assert add_similarity_edges(graph, make_note("a"), [make_note("b", embedding=[1.0])]) == 0

    def test_dimension_mismatch_propagates(self, make_note):
        graph = KnowledgeGraph()
        a = make_note("a", embedding=[1.0, 0.0])
        b = make_note("b", embedding=[1.0, 0.0, 0.0])

        with pytest.raises(VectorDimensionError):
            add_similarity_edges(graph, a, [b])


@pytest.mark.unit
class TestBuildAndRemove:
    def test_build_from_notes(self, make_note):
        notes = [
            make_note("Maria anrufen", embedding=[1.0, 0.0], persons=["Maria"], topics=["Arbeit"]),
            make_note("Maria treffen", embedding=[0.9, 0.1], persons=["Maria"]),
            make_note("Milch kaufen", embedding=[0.0, 1.0]),
        ]

        graph = build_from_notes(notes)
        summary = stats(graph)

        assert summary["nodes"]["note"] == 3
        assert summary["nodes"]["person"] == 1
        assert summary["nodes"]["topic"] == 1
        assert summary["edges"]["similarTo"] == 2
        assert summary["edges"]["mentions"] == 2
        assert summary["total_nodes"] == 5

    def test_index_note_matches_rebuild(self, make_note):
        notes = [
            make_note("a", embedding=[1.0, 0.0], persons=["Maria"]),
            make_note("b", embedding=[0.9, 0.1], persons=["Maria"]),
        ]
        incremental = KnowledgeGraph()
        for i, note in enumerate(notes):
            index_note(incremental, note, notes[: i + 1])

        rebuilt = build_from_notes(notes)

        assert {e.id for e in incremental.edges} == {e.id for e in rebuilt.edges}
        assert {n.id for n in incremental.nodes} == {n.id for n in rebuilt.nodes}

    def test_remove_note_cleans_entities(self, make_note):
        shared = make_note("a", persons=["Maria"], topics=["Arbeit"])
        only = make_note("b", persons=["Maria", "Tom"])
        graph = build_from_notes([shared, only])

        assert remove_note(graph, only.id) is True

        assert graph.get_node(note_node_id(only.id)) is None
        assert graph.get_node("person_tom") is None
        assert graph.get_node("person_maria").count == 1
        assert all(only.id not in e.id for e in graph.edges)

    def test_remove_unknown_note(self):
        assert remove_note(KnowledgeGraph(), "nt_missing") is False


@pytest.mark.unit
class TestQueries:
    def test_similar_notes_from_graph(self, make_note):
        target = make_note("target", embedding=[1.0, 0.0])
        close = make_note("close", embedding=[0.95, 0.05])
        medium = make_note("medium", embedding=[0.8, 0.6])
        graph = build_from_notes([target, close, medium])

        results = similar_notes_from_graph(graph, target.id, limit=1)

        assert len(results) == 1
        assert results[0]["note_id"] == close.id
        assert results[0]["label"] == "close"

    def test_entities_for_note(self, make_note):
        note = make_note("x", persons=["Maria"], places=["Berlin"], projects=["Website"], topics=["Arbeit"])
        graph = build_from_notes([note])

        bag = entities_for_note(graph, note.id)

        assert bag.persons == ["Maria"]
        assert bag.places == ["Berlin"]
        assert bag.projects == ["Website"]
        assert bag.topics == ["Arbeit"]

    def test_top_entities(self, make_note):
        notes = [
            make_note("1", persons=["Maria", "Tom"]),
            make_note("2", persons=["Maria"]),
            make_note("3", persons=["Maria", "Anna"]),
        ]
        graph = build_from_notes(notes)

        top = top_entities(graph, GraphNodeType.PERSON, limit=2)

        assert top[0] == {"label": "Maria", "count": 3}
        assert len(top) == 2
