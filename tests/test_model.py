import pytest

from dialogtree.model import DialogTree, NodeKind, create_node


def test_create_node_defaults() -> None:
    npc = create_node(NodeKind.NPC)
    choice = create_node(NodeKind.PLAYER_CHOICE)
    other = create_node(NodeKind.NPC)

    assert npc.title == "New npc node"
    assert npc.content == ""
    assert npc.id != other.id
    assert [c.text for c in choice.data.choices] == ["Choice 1"]


def test_create_node_with_choices() -> None:
    node = create_node(NodeKind.PLAYER_CHOICE, "Ask", choices=["Yes", "No"])

    assert [c.text for c in node.data.choices] == ["Yes", "No"]
    assert len({c.id for c in node.data.choices}) == 2
    assert node.find_choice(node.data.choices[1].id).text == "No"
    assert node.find_choice("missing") is None


def test_add_node_rejects_duplicate_ids() -> None:
    tree = DialogTree(id="t", name="Tree")
    tree.add_node(create_node(NodeKind.NPC, node_id="a"))

    with pytest.raises(ValueError):
        tree.add_node(create_node(NodeKind.END, node_id="a"))


def test_remove_node_drops_connections_and_start() -> None:
    tree = DialogTree(id="t", name="Tree", start_node_id="a")
    tree.add_node(create_node(NodeKind.NPC, node_id="a"))
    tree.add_node(create_node(NodeKind.NPC, node_id="b"))
    tree.add_node(create_node(NodeKind.END, node_id="c"))
    tree.connect("a", "b")
    kept = tree.connect("b", "c")

    removed = tree.remove_node("a")

    assert removed is not None and removed.id == "a"
    assert list(tree.nodes) == ["b", "c"]
    assert tree.connections == [kept]
    assert tree.start_node_id is None
    assert tree.remove_node("a") is None


def test_add_choice_only_on_player_choice_nodes() -> None:
    tree = DialogTree(id="t", name="Tree")
    tree.add_node(create_node(NodeKind.PLAYER_CHOICE, node_id="ask", choices=["First"]))
    tree.add_node(create_node(NodeKind.NPC, node_id="npc"))

    choice = tree.add_choice("ask", "Second")

    assert tree.nodes["ask"].data.choices[-1] == choice
    with pytest.raises(ValueError):
        tree.add_choice("npc", "Nope")
