"""
Data models for NexMind.

Core models:
- Note, EntityBag: user notes with classification and task fields
- KnowledgeGraph, GraphNode, GraphEdge: graph over notes and entities
- AISuggestion and its payloads: automation engine output
- NlpItem, NlpAnalysisResult, AnalysisOutcome: NLP pipeline results
- ChatMessage, ChatCommand: chat history and command interpretation
- BrainReport: weekly summary
"""

from nexmind.models.analysis import (
    AnalysisOutcome,
    AnalysisSource,
    ItemType,
    NlpAnalysisResult,
    NlpItem,
    SemanticClassification,
)
from nexmind.models.chat import (
    ChatAction,
    ChatCommand,
    ChatExchange,
    ChatMessage,
    ChatRole,
    CommandType,
    Timeframe,
)
from nexmind.models.graph import (
    ENTITY_NODE_TYPES,
    EdgeType,
    GraphEdge,
    GraphNode,
    GraphNodeType,
    KnowledgeGraph,
    edge_id,
)
from nexmind.models.note import EntityBag, Note, NoteCategory, TaskPriority, TaskStatus
from nexmind.models.report import BrainReport, CategoryInsight, TopEntities
from nexmind.models.suggestion import (
    ActionType,
    AISuggestion,
    CleanupSuggestion,
    CleanupType,
    DuplicateGroup,
    EmergingProject,
    MergeSuggestion,
    NextActionSuggestion,
    ProjectMatch,
    SuggestionPayload,
    SuggestionStatus,
    SuggestionType,
    TopicCluster,
)

__all__ = [
    # Note models
    "Note",
    "EntityBag",
    "NoteCategory",
    "TaskStatus",
    "TaskPriority",
    # Graph models
    "KnowledgeGraph",
    "GraphNode",
    "GraphEdge",
    "GraphNodeType",
    "EdgeType",
    "ENTITY_NODE_TYPES",
    "edge_id",
    # Suggestion models
    "AISuggestion",
    "SuggestionType",
    "SuggestionStatus",
    "SuggestionPayload",
    "MergeSuggestion",
    "ProjectMatch",
    "CleanupSuggestion",
    "CleanupType",
    "EmergingProject",
    "NextActionSuggestion",
    "ActionType",
    "DuplicateGroup",
    "TopicCluster",
    # Analysis models
    "NlpItem",
    "NlpAnalysisResult",
    "AnalysisOutcome",
    "AnalysisSource",
    "ItemType",
    "SemanticClassification",
    # Chat models
    "ChatMessage",
    "ChatRole",
    "ChatCommand",
    "ChatAction",
    "CommandType",
    "Timeframe",
    "ChatExchange",
    # Report models
    "BrainReport",
    "CategoryInsight",
    "TopEntities",
]
