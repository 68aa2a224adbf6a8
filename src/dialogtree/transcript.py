from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional
from .engine import TraversalSession
from .graph import find_node
from .model import Character, DialogTree, NodeKind

UNKNOWN_NODE_TITLE = "Unknown Node"

@dataclass
class TranscriptLine:
    node_id: str
    title: str
    timestamp: datetime
    kind: Optional[NodeKind] = None
    speaker: Optional[str] = None
    content: Optional[str] = None
    choice_text: Optional[str] = None

def transcript(session: TraversalSession, tree: DialogTree, characters: Iterable[Character] = ()) -> list[TranscriptLine]:
    """
    Render the session history against the tree as it is now.
    History only stores node ids, so edited nodes show their current text and
    deleted nodes show as unknown.
    """
    characters_by_id = {character.id: character for character in characters}

    lines = []
    for entry in session.history:
        node = find_node(tree, entry.node_id)
        if node is None:
            lines.append(TranscriptLine(
                node_id=entry.node_id,
                title=UNKNOWN_NODE_TITLE,
                timestamp=entry.timestamp,
                choice_text=entry.choice_text,
            ))
            continue

        character = characters_by_id.get(node.data.character) if node.data.character else None
        lines.append(TranscriptLine(
            node_id=node.id,
            title=node.title or UNKNOWN_NODE_TITLE,
            timestamp=entry.timestamp,
            kind=node.kind,
            speaker=character.label if character else None,
            content=node.data.content,
            choice_text=entry.choice_text,
        ))
    return lines
