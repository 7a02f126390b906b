"""
Select one root-to-tip path through a conversation's message graph.

Edits and regenerations in the export create sibling nodes, so the raw
mapping is a branching history. The displayed transcript is a single path:
the branch ending at the export's current node when it resolves, otherwise
the longest first-child path. Every walk keeps a visited set, so cyclic
parent or child links stop instead of looping.
"""

from .model import MessageNode


def _walk_to_root(nodes: dict[str, MessageNode], leaf_id: str) -> list[str]:
    path = []
    visited = set()
    current = leaf_id
    while current is not None and current in nodes and current not in visited:
        visited.add(current)
        path.append(current)
        current = nodes[current].parent_id
    path.reverse()
    return path


def _first_child_path(nodes: dict[str, MessageNode], root_id: str) -> list[str]:
    path = []
    visited = set()
    current = root_id
    while current is not None and current not in visited:
        visited.add(current)
        path.append(current)
        children = [c for c in nodes[current].child_ids if c in nodes]
        current = children[0] if children else None
    return path


def find_roots(nodes: dict[str, MessageNode]) -> list[str]:
    """Ids of nodes without a parent, sorted for deterministic tie-breaks."""
    return sorted(nid for nid, node in nodes.items() if node.parent_id is None)


def active_path(nodes: dict[str, MessageNode], current_leaf_id: str | None = None) -> list[str]:
    """Return every node id on the active branch, root first, structural nodes included."""
    if not nodes:
        return []

    if current_leaf_id is not None and current_leaf_id in nodes:
        return _walk_to_root(nodes, current_leaf_id)

    best: list[str] = []
    for root_id in find_roots(nodes):
        path = _first_child_path(nodes, root_id)
        # Strictly longer only: roots are visited in sorted order.
        if len(path) > len(best):
            best = path
    return best


def linearize(nodes: dict[str, MessageNode], current_leaf_id: str | None = None) -> tuple[MessageNode, ...]:
    """Messages of the active branch in conversational order."""
    return tuple(
        nodes[nid] for nid in active_path(nodes, current_leaf_id)
        if not nodes[nid].is_structural
    )


def find_all_branches(nodes: dict[str, MessageNode]) -> list[list[str]]:
    """Find all paths from a root to a leaf (iterative to handle deep trees)."""
    branches = []

    for root_id in find_roots(nodes):
        # Stack holds (node_id, path_so_far)
        stack = [(root_id, [])]
        while stack:
            node_id, path = stack.pop()
            current_path = path + [node_id]
            on_path = set(current_path)
            children = [c for c in nodes[node_id].child_ids if c in nodes and c not in on_path]

            if not children:
                branches.append(current_path)
            else:
                # Add children in reverse order so first child is processed first
                for child_id in reversed(children):
                    stack.append((child_id, current_path))

    return branches


def count_branches(nodes: dict[str, MessageNode]) -> int:
    """Count the number of leaf nodes (branch endpoints) in a conversation."""
    leaves = sum(1 for node in nodes.values() if not any(c in nodes for c in node.child_ids))
    return max(1, leaves)
