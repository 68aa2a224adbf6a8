from dialogtree.graph import find_node, first_target, incoming, outgoing, outgoing_for_handle, resolve_targets
from dialogtree.model import DialogConnection, DialogTree, NodeKind, create_node


def _make_tree() -> DialogTree:
    tree = DialogTree(id="t", name="Graph")
    tree.add_node(create_node(NodeKind.NPC, "Hello", "Hi there", node_id="a"))
    tree.add_node(create_node(NodeKind.NPC, "Second", "More", node_id="b"))
    tree.add_node(create_node(NodeKind.END, "Bye", node_id="c"))
    tree.connections = [
        DialogConnection(id="1", source="a", target="ghost"),
        DialogConnection(id="2", source="a", target="b", source_handle="x"),
        DialogConnection(id="3", source="b", target="c"),
        DialogConnection(id="4", source="a", target="c", source_handle="x"),
    ]
    return tree


def test_find_node() -> None:
    tree = _make_tree()

    assert find_node(tree, "b").title == "Second"
    assert find_node(tree, "nope") is None
    assert find_node(tree, None) is None


def test_outgoing_keeps_connection_order() -> None:
    tree = _make_tree()

    assert [conn.id for conn in outgoing(tree, "a")] == ["1", "2", "4"]
    assert outgoing(tree, "c") == []


def test_outgoing_for_handle_filters() -> None:
    tree = _make_tree()

    assert [conn.id for conn in outgoing_for_handle(tree, "a", "x")] == ["2", "4"]
    assert outgoing_for_handle(tree, "a", "y") == []


def test_resolve_targets_skips_dangling_connections() -> None:
    tree = _make_tree()

    targets = resolve_targets(tree, outgoing(tree, "a"))

    assert [node.id for node in targets] == ["b", "c"]
    assert first_target(tree, outgoing(tree, "a")).id == "b"
    assert first_target(tree, []) is None


def test_incoming() -> None:
    tree = _make_tree()

    assert [conn.id for conn in incoming(tree, "c")] == ["3", "4"]
