"""
ID generation utilities for NexMind.

Provides consistent ID generation for all entity types:
- Notes: nt_xxx
- Suggestions: sug_xxx
- Analysis items: item_xxx
- Input groups: g_xxx
- Chat messages: msg_xxx
"""

from uuid import uuid4


def generate_note_id() -> str:
    """
    Generate unique Note ID.

    Returns:
        ID in format "nt_xxx" where xxx is 12 hex characters
    """
    return f"nt_{uuid4().hex[:12]}"


def generate_suggestion_id() -> str:
    """
    Generate unique suggestion ID.

    Returns:
        ID in format "sug_xxx" where xxx is 12 hex characters
    """
    return f"sug_{uuid4().hex[:12]}"


def generate_item_id() -> str:
    """
    Generate unique ID for an analyzed input item.

    Returns:
        ID in format "item_xxx" where xxx is 12 hex characters
    """
    return f"item_{uuid4().hex[:12]}"


def generate_group_id() -> str:
    """
    Generate group ID shared by all items split from one input.

    Returns:
        ID in format "g_xxx" where xxx is 12 hex characters
    """
    return f"g_{uuid4().hex[:12]}"


def generate_message_id() -> str:
    """
    Generate unique chat message ID.

    Returns:
        ID in format "msg_xxx" where xxx is 12 hex characters
    """
    return f"msg_{uuid4().hex[:12]}"
