"""
Read one exported conversation into a Conversation.

Export shape (one element of conversations.json):

    {"id": ..., "title": ..., "create_time": ..., "update_time": ...,
     "default_model_slug": ..., "current_node": ...,
     "mapping": {node_id: {"message": {...} | null,
                           "parent": node_id | null,
                           "children": [node_id, ...]}}}

Missing or odd fields on a node fall back to defaults. Only a record that
cannot be read as a conversation at all raises ConversationSkipped.
"""

from typing import Any

from .content import (
    classify_content_type,
    extract_parts,
    normalize_role,
    safe_float,
    safe_str,
)
from .errors import ConversationSkipped
from .linearize import linearize
from .model import Conversation, MessageNode
from .summary import summarize


def _child_ids(raw_children: Any, mapping: dict) -> tuple[str, ...]:
    if not isinstance(raw_children, list):
        return ()
    seen = []
    for child_id in raw_children:
        if isinstance(child_id, str) and child_id in mapping and child_id not in seen:
            seen.append(child_id)
    return tuple(seen)


def read_node(node_id: str, raw_node: dict, mapping: dict) -> MessageNode:
    """Convert one mapping entry into a MessageNode."""
    parent = raw_node.get('parent')
    if not isinstance(parent, str) or parent not in mapping or parent == node_id:
        parent = None

    children = _child_ids(raw_node.get('children'), mapping)

    msg = raw_node.get('message')
    if not isinstance(msg, dict):
        # Structural placeholder: kept for traversal, carries no role or content.
        return MessageNode(id=node_id, parent_id=parent, child_ids=children)

    content = msg.get('content')
    metadata = msg.get('metadata')
    if not isinstance(metadata, dict):
        metadata = {}
    source_type = content.get('content_type') if isinstance(content, dict) else None
    language = content.get('language') if isinstance(content, dict) else None

    return MessageNode(
        id=node_id,
        parent_id=parent,
        child_ids=children,
        role=normalize_role(msg.get('author')),
        content_type=classify_content_type(content),
        raw_content_parts=extract_parts(content),
        created_at=safe_float(msg.get('create_time')),
        status=safe_str(msg.get('status')),
        message_id=safe_str(msg.get('id')),
        source_content_type=safe_str(source_type),
        language=safe_str(language),
        model_slug=safe_str(metadata.get('model_slug')),
    )


def read_nodes(mapping: dict[str, Any]) -> dict[str, MessageNode]:
    """Build the node mapping of a conversation, ignoring entries that are not objects."""
    valid = {nid: raw for nid, raw in mapping.items() if isinstance(raw, dict)}
    return {nid: read_node(nid, raw, valid) for nid, raw in valid.items()}


def parse_conversation(raw: Any) -> Conversation:
    """Parse one raw conversation record, linearize it and summarize it."""
    if not isinstance(raw, dict):
        raise ConversationSkipped(f'record is a {type(raw).__name__}, not an object')

    conv_id = raw.get('id') or raw.get('conversation_id')
    if not isinstance(conv_id, str) or not conv_id:
        raise ConversationSkipped('record has no conversation id')

    mapping = raw.get('mapping')
    if mapping is None:
        mapping = {}
    if not isinstance(mapping, dict):
        raise ConversationSkipped('mapping is not an object', conv_id)

    nodes = read_nodes(mapping)
    current = raw.get('current_node')
    current_leaf_id = current if isinstance(current, str) else None

    return Conversation(
        id=conv_id,
        title=safe_str(raw.get('title')),
        created_at=safe_float(raw.get('create_time')),
        updated_at=safe_float(raw.get('update_time')),
        model_slug=safe_str(raw.get('default_model_slug')),
        origin_id=safe_str(raw.get('gizmo_id')),
        gizmo_type=safe_str(raw.get('gizmo_type')),
        origin=safe_str(raw.get('conversation_origin')),
        is_archived=bool(raw.get('is_archived')),
        is_starred=bool(raw.get('is_starred')),
        nodes=nodes,
        current_leaf_id=current_leaf_id,
        linearized_messages=linearize(nodes, current_leaf_id),
        summary=summarize(nodes),
    )
