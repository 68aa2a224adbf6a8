from typing import Optional
from .model import DialogTree, DialogNode, DialogConnection

def find_node(tree: DialogTree, node_id: Optional[str]) -> Optional[DialogNode]:
    if node_id is None:
        return None
    return tree.nodes.get(node_id)

def outgoing(tree: DialogTree, node_id: str) -> list[DialogConnection]:
    return [conn for conn in tree.connections if conn.source == node_id]

def outgoing_for_handle(tree: DialogTree, node_id: str, handle: str) -> list[DialogConnection]:
    return [conn for conn in outgoing(tree, node_id) if conn.source_handle == handle]

def incoming(tree: DialogTree, node_id: str) -> list[DialogConnection]:
    return [conn for conn in tree.connections if conn.target == node_id]

def resolve_targets(tree: DialogTree, connections: list[DialogConnection]) -> list[DialogNode]:
    # Connections pointing at missing nodes are skipped
    return [
        tree.nodes[conn.target]
        for conn in connections
        if conn.target in tree.nodes
    ]

def first_target(tree: DialogTree, connections: list[DialogConnection]) -> Optional[DialogNode]:
    return next(iter(resolve_targets(tree, connections)), None)
