from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
import logging
from dacite import Config, from_dict
from dacite.exceptions import DaciteError
import yaml
from .model import Character, DialogTree, NodeKind

logger = logging.getLogger(__name__)

DACITE_CONFIG = Config(cast=[NodeKind, float])

# Editor export keys and their dataclass field names
TREE_KEYS = {"startNodeId": "start_node_id"}
NODE_KEYS = {"type": "kind"}
CONNECTION_KEYS = {"sourceHandle": "source_handle", "targetHandle": "target_handle"}
CHARACTER_KEYS = {"displayName": "display_name"}

class TreeLoadError(RuntimeError):
    """Raised when a dialog tree file cannot be read or does not describe a dialog tree."""

@dataclass
class TreeFile:
    tree: DialogTree
    characters: list[Character] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)                             # Problems found while loading (duplicate ids etc)

def load_tree(path: Path, tree_name: Optional[str] = None) -> TreeFile:
    """
    Load a dialog tree from a YAML or JSON file.
    Accepts a bare tree, a single tree export ({"tree": ...}) or a whole
    project ({"dialogTrees": [...]}), in which case the tree called
    tree_name (or the first tree) is used.
    """
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise TreeLoadError(f"Cannot read '{path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise TreeLoadError(f"'{path}' is not valid YAML/JSON: {exc}") from exc

    return tree_from_document(document, tree_name)

def tree_from_document(document: Any, tree_name: Optional[str] = None) -> TreeFile:
    if not isinstance(document, dict):
        raise TreeLoadError("Dialog tree document must be a mapping.")

    characters_data = document.get("characters") or []
    if "tree" in document:
        tree_data = document["tree"]
    elif "dialogTrees" in document:
        tree_data = select_tree(document["dialogTrees"], tree_name)
    elif "nodes" in document:
        tree_data = document
    else:
        raise TreeLoadError("Document has no 'tree', 'dialogTrees' or 'nodes' entry.")

    issues: list[str] = []
    tree = tree_from_dict(tree_data, issues)
    characters = [
        character_from_dict(character_data)
        for character_data in characters_data
    ]
    return TreeFile(tree=tree, characters=characters, issues=issues)

def select_tree(trees: Any, tree_name: Optional[str]) -> dict:
    if not isinstance(trees, list) or not trees:
        raise TreeLoadError("Project contains no dialog trees.")
    if tree_name is None:
        return trees[0]

    match = next((tree for tree in trees if isinstance(tree, dict) and tree.get("name") == tree_name), None)
    if match is None:
        names = [str(tree.get("name")) for tree in trees if isinstance(tree, dict)]
        raise TreeLoadError(f"No dialog tree named '{tree_name}'. Available: {', '.join(names)}")
    return match

def tree_from_dict(data: Any, issues: Optional[list[str]] = None) -> DialogTree:
    if issues is None:
        issues = []
    if not isinstance(data, dict):
        raise TreeLoadError("Dialog tree must be a mapping.")

    tree_data = rename_keys(data, TREE_KEYS)
    nodes_data = tree_data.get("nodes") or []
    if isinstance(nodes_data, dict):
        nodes_data = list(nodes_data.values())

    # Node lists become the ordered id -> node mapping
    nodes: dict[str, dict] = {}
    for node_data in nodes_data:
        node = node_from_dict(node_data)
        node_id = node["id"]
        if node_id in nodes:
            logger.warning("Duplicate node id '%s'; keeping the last definition", node_id)
            issues.append(f"Duplicate node id '{node_id}'. Only the last definition was kept.")
        nodes[node_id] = node

    tree_data["nodes"] = nodes
    connections_data = tree_data.get("connections") or []
    if not all(isinstance(connection_data, dict) for connection_data in connections_data):
        raise TreeLoadError("Dialog connections must be mappings.")
    tree_data["connections"] = [
        rename_keys(connection_data, CONNECTION_KEYS)
        for connection_data in connections_data
    ]

    try:
        return from_dict(DialogTree, tree_data, config=DACITE_CONFIG)
    except (DaciteError, ValueError) as exc:
        raise TreeLoadError(f"Dialog tree '{data.get('name')}' does not match the expected schema: {exc}") from exc

def node_from_dict(data: Any) -> dict:
    if not isinstance(data, dict):
        raise TreeLoadError("Dialog node must be a mapping.")
    node = rename_keys(data, NODE_KEYS)
    raw_data = node.get("data") or {}
    if not isinstance(raw_data, dict):
        raise TreeLoadError(f"Data of dialog node '{node.get('id', '?')}' must be a mapping.")
    if node.get("id") is None:
        raise TreeLoadError(f"Dialog node '{raw_data.get('title', '?')}' has no id.")
    node["id"] = str(node["id"])

    node_data = dict(raw_data)
    # Older exports keep conditions and actions in their own fields
    if not node_data.get("content"):
        node_data["content"] = node_data.get("condition") or node_data.get("action")
    raw_choices = node_data.get("choices") or []
    if not all(isinstance(choice, dict) for choice in raw_choices):
        raise TreeLoadError(f"Choices of dialog node '{node['id']}' must be mappings with an id and text.")
    node_data["choices"] = [
        {"id": str(choice.get("id")), "text": choice.get("text") or ""}
        for choice in raw_choices
    ]
    node["data"] = node_data
    return node

def character_from_dict(data: Any) -> Character:
    try:
        return from_dict(Character, rename_keys(data, CHARACTER_KEYS), config=DACITE_CONFIG)
    except (DaciteError, AttributeError) as exc:
        raise TreeLoadError(f"Invalid character entry: {exc}") from exc

def rename_keys(data: dict, renames: dict[str, str]) -> dict:
    return {renames.get(key, key): value for key, value in data.items()}
