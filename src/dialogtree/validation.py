from .expressions import UnknownAction, UnresolvedCondition, parse_action, parse_condition, script_lines
from .graph import incoming, outgoing
from .model import DialogNode, DialogTree, NodeKind, TRUE_HANDLE, FALSE_HANDLE
from .util import describe_string_list, quoted

def validate_tree(tree: DialogTree) -> list[str]:
    """
    Advisory checks for the editor and importer.
    Nothing here is required for traversal, which copes with every issue
    reported (the session just gets stuck).
    """
    issues: list[str] = []

    if not tree.nodes:
        issues.append(f"Dialog tree '{tree.name}' has no nodes.")
        return issues

    if tree.start_node_id and tree.start_node_id not in tree.nodes:
        issues.append(f"Start node '{tree.start_node_id}' was not found in the 'nodes' list.")

    for node in tree.nodes.values():
        issues.extend(validate_node(node))

    issues.extend(validate_connections(tree))

    # Orphans. Only meaningful once the entry point is known
    if tree.start_node_id in tree.nodes:
        for node in tree.nodes.values():
            sources = [conn.source for conn in incoming(tree, node.id) if conn.source in tree.nodes]
            if node.id != tree.start_node_id and not sources:
                issues.append(f"Node '{node_label(node)}' has no incoming connections and can never be reached.")

    # Dead ends
    for node in tree.nodes.values():
        if node.kind != NodeKind.END and not outgoing(tree, node.id):
            issues.append(f"Node '{node_label(node)}' has no outgoing connections and is not an end node.")

    return issues

def validate_node(node: DialogNode) -> list[str]:
    issues: list[str] = []
    label = node_label(node)
    content = node.content.strip()

    if not node.title.strip():
        issues.append(f"Node '{node.id}' has no title.")

    if node.kind == NodeKind.NPC and not content:
        issues.append(f"NPC node '{label}' has no dialog text.")

    if node.kind == NodeKind.PLAYER_CHOICE:
        if not node.data.choices:
            issues.append(f"Player choice node '{label}' has no choices.")
        if any(not choice.text.strip() for choice in node.data.choices):
            issues.append(f"Player choice node '{label}' has a choice with no text.")
        choice_ids = [choice.id for choice in node.data.choices]
        duplicates = sorted({choice_id for choice_id in choice_ids if choice_ids.count(choice_id) > 1})
        if duplicates:
            issues.append(f"Player choice node '{label}' reuses choice id(s) {describe_string_list(quoted(duplicates), 'and')}.")

    if node.kind == NodeKind.CONDITIONAL:
        if not content:
            issues.append(f"Conditional node '{label}' has no condition.")
        elif isinstance(parse_condition(content), UnresolvedCondition):
            issues.append(f"Condition '{content}' in '{label}' is not recognised and will be simulated randomly.")

    if node.kind == NodeKind.ACTION:
        if not content:
            issues.append(f"Action node '{label}' has no action.")
        for line in script_lines(content):
            if isinstance(parse_action(line), UnknownAction):
                issues.append(f"Action '{line}' in '{label}' is not recognised and will only be recorded.")

    return issues

def validate_connections(tree: DialogTree) -> list[str]:
    issues: list[str] = []
    conditional_handles: set[tuple[str, str]] = set()

    for conn in tree.connections:
        source = tree.nodes.get(conn.source)
        if source is None:
            issues.append(f"Connection '{conn.id}' starts at missing node '{conn.source}'.")
            continue
        if conn.target not in tree.nodes:
            issues.append(f"Connection '{conn.id}' from '{node_label(source)}' points to missing node '{conn.target}'.")

        if source.kind == NodeKind.PLAYER_CHOICE:
            if conn.source_handle is None or source.find_choice(conn.source_handle) is None:
                issues.append(f"Connection '{conn.id}' from '{node_label(source)}' is not attached to any of its choices.")

        if source.kind == NodeKind.CONDITIONAL:
            if conn.source_handle not in (TRUE_HANDLE, FALSE_HANDLE):
                issues.append(f"Connection '{conn.id}' from '{node_label(source)}' must use the 'true' or 'false' handle.")
            elif (source.id, conn.source_handle) in conditional_handles:
                issues.append(f"Conditional node '{node_label(source)}' has more than one '{conn.source_handle}' branch. The first one is used.")
            else:
                conditional_handles.add((source.id, conn.source_handle))

    return issues

def node_label(node: DialogNode) -> str:
    return node.title or node.id
