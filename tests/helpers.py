"""Builders for raw export records used across the tests."""

import json
from typing import Any


def raw_message(role: str = 'user', parts: list | None = None, content_type: str = 'text',
                create_time: float | None = None, **extra) -> dict:
    msg = {
        'id': extra.pop('message_id', 'msg'),
        'author': {'role': role},
        'content': {'content_type': content_type, 'parts': parts if parts is not None else []},
        'create_time': create_time,
        'status': 'finished_successfully',
    }
    msg.update(extra)
    return msg


def raw_node(message: dict | None = None, parent: str | None = None, children: list | None = None) -> dict:
    return {'message': message, 'parent': parent, 'children': list(children or [])}


def chain_mapping(turns: list[tuple[str, str]], with_root: bool = True, start_time: float = 1000.0) -> dict:
    """A linear mapping: optional structural root, then one node per (role, text)."""
    mapping: dict[str, Any] = {}
    ids = [f"n{i}" for i in range(len(turns))]
    if with_root:
        ids = ['root'] + ids
        mapping['root'] = raw_node(None, None, [ids[1]] if len(ids) > 1 else [])
    offset = 1 if with_root else 0
    for i, (role, text) in enumerate(turns):
        nid = ids[i + offset]
        parent = ids[i + offset - 1] if i + offset > 0 else None
        children = [ids[i + offset + 1]] if i + offset + 1 < len(ids) else []
        mapping[nid] = raw_node(
            raw_message(role, [text], create_time=start_time + i),
            parent,
            children,
        )
    return mapping


def raw_conversation(conv_id: str, title: str = '', create_time: float | None = None,
                     mapping: dict | None = None, current_node: str | None = None, **extra) -> dict:
    conv = {
        'id': conv_id,
        'title': title,
        'create_time': create_time,
        'update_time': create_time,
        'default_model_slug': 'gpt-4o',
        'mapping': mapping if mapping is not None else {},
        'current_node': current_node,
    }
    conv.update(extra)
    return conv


def simple_conversation(conv_id: str, title: str = '', create_time: float | None = None,
                        turns: list[tuple[str, str]] | None = None) -> dict:
    turns = turns if turns is not None else [('user', 'hello'), ('assistant', 'hi there')]
    mapping = chain_mapping(turns)
    leaf = f"n{len(turns) - 1}" if turns else 'root'
    return raw_conversation(conv_id, title, create_time, mapping, leaf)


def to_bytes(data: Any) -> bytes:
    return json.dumps(data).encode('utf-8')
