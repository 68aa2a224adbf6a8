from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
import uuid

class NodeKind(Enum):
    NPC = "npc"
    PLAYER_CHOICE = "player_choice"
    CONDITIONAL = "conditional"
    ACTION = "action"
    END = "end"

# Connection handles used by conditional nodes
TRUE_HANDLE = "true"
FALSE_HANDLE = "false"

@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0

@dataclass
class DialogChoice:
    id: str
    text: str

@dataclass
class DialogNodeData:
    title: str = ""
    content: Optional[str] = None                                               # NPC line(s), condition, action statement(s) or closing message, depending on node kind
    character: Optional[str] = None                                             # Character id of the speaker (NPC and player choice nodes)
    choices: list[DialogChoice] = field(default_factory=list)                   # Player choice nodes only. Order is display order.
    metadata: dict[str, Any] = field(default_factory=dict)                      # Editor data, carried through untouched

@dataclass
class DialogNode:
    id: str
    kind: NodeKind
    data: DialogNodeData = field(default_factory=DialogNodeData)
    position: Position = field(default_factory=Position)

    @property
    def title(self) -> str:
        return self.data.title

    @property
    def content(self) -> str:
        return self.data.content or ""

    def find_choice(self, choice_id: str) -> Optional[DialogChoice]:
        return next((choice for choice in self.data.choices if choice.id == choice_id), None)

@dataclass
class DialogConnection:
    id: str
    source: str
    target: str
    source_handle: Optional[str] = None                                         # Choice id for player choice sources, "true"/"false" for conditional sources
    target_handle: Optional[str] = None                                         # Not used by traversal

@dataclass
class Character:
    id: str
    name: str
    display_name: Optional[str] = None
    role: Optional[str] = None
    color: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name or self.name

@dataclass
class DialogTree:
    """
    A branching conversation graph.
    Nodes are keyed by id in insertion order, which is also the order used
    when a start node has to be guessed.
    """
    id: str
    name: str
    description: Optional[str] = None
    nodes: dict[str, DialogNode] = field(default_factory=dict)
    connections: list[DialogConnection] = field(default_factory=list)
    start_node_id: Optional[str] = None

    def add_node(self, node: DialogNode) -> DialogNode:
        if node.id in self.nodes:
            raise ValueError(f"Node '{node.id}' already exists in tree '{self.name}'.")
        self.nodes[node.id] = node
        return node

    def remove_node(self, node_id: str) -> Optional[DialogNode]:
        node = self.nodes.pop(node_id, None)
        if node is None:
            return None

        # Drop every connection touching the node
        self.connections = [
            conn
            for conn in self.connections
            if conn.source != node_id and conn.target != node_id
        ]
        if self.start_node_id == node_id:
            self.start_node_id = None
        return node

    def connect(self, source: str, target: str, source_handle: Optional[str] = None) -> DialogConnection:
        connection = DialogConnection(
            id=new_id(),
            source=source,
            target=target,
            source_handle=source_handle,
        )
        self.connections.append(connection)
        return connection

    def add_choice(self, node_id: str, text: str) -> DialogChoice:
        node = self.nodes[node_id]
        if node.kind != NodeKind.PLAYER_CHOICE:
            raise ValueError(f"Node '{node_id}' is not a player choice node.")
        choice = DialogChoice(id=new_id(), text=text)
        node.data.choices.append(choice)
        return choice

def new_id() -> str:
    return str(uuid.uuid4())

def create_node(
    kind: NodeKind,
    title: Optional[str] = None,
    content: Optional[str] = None,
    *,
    character: Optional[str] = None,
    choices: Optional[list[str]] = None,
    node_id: Optional[str] = None,
    position: Optional[Position] = None,
) -> DialogNode:
    """
    Create a node the way the editor palette does: fresh id, a default title,
    and a single placeholder choice for player choice nodes unless choice
    texts are given.
    """
    node_choices: list[DialogChoice] = []
    if kind == NodeKind.PLAYER_CHOICE:
        for text in choices or ["Choice 1"]:
            node_choices.append(DialogChoice(id=new_id(), text=text))

    return DialogNode(
        id=node_id or new_id(),
        kind=kind,
        data=DialogNodeData(
            title=title if title is not None else f"New {kind.value} node",
            content=content,
            character=character,
            choices=node_choices,
        ),
        position=position or Position(),
    )
