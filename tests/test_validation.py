from dialogtree.model import DialogChoice, DialogConnection, DialogTree, NodeKind, create_node
from dialogtree.validation import validate_tree


def _make_valid_tree() -> DialogTree:
    tree = DialogTree(id="t", name="Valid")
    tree.add_node(create_node(NodeKind.NPC, "Hello", "Hi there", node_id="hello"))
    ask = tree.add_node(create_node(NodeKind.PLAYER_CHOICE, "Ask", choices=["Left", "Right"], node_id="ask"))
    tree.add_node(create_node(NodeKind.CONDITIONAL, "Check", "hasItem('map')", node_id="check"))
    tree.add_node(create_node(NodeKind.ACTION, "Reward", "addItem map\nmodifyHealth +5", node_id="reward"))
    tree.add_node(create_node(NodeKind.END, "Done", node_id="done"))
    tree.start_node_id = "hello"

    tree.connect("hello", "ask")
    tree.connect("ask", "check", ask.data.choices[0].id)
    tree.connect("ask", "done", ask.data.choices[1].id)
    tree.connect("check", "done", "true")
    tree.connect("check", "reward", "false")
    tree.connect("reward", "done")
    return tree


def test_valid_tree_has_no_issues() -> None:
    assert validate_tree(_make_valid_tree()) == []


def test_empty_tree() -> None:
    issues = validate_tree(DialogTree(id="t", name="Empty"))

    assert issues == ["Dialog tree 'Empty' has no nodes."]


def test_missing_start_node() -> None:
    tree = _make_valid_tree()
    tree.start_node_id = "gone"

    assert any("Start node 'gone'" in issue for issue in validate_tree(tree))


def test_node_content_rules() -> None:
    tree = _make_valid_tree()
    tree.nodes["hello"].data.content = "   "
    tree.nodes["hello"].data.title = ""
    tree.nodes["check"].data.content = ""
    tree.nodes["reward"].data.content = None
    tree.nodes["ask"].data.choices[1].text = ""

    issues = validate_tree(tree)

    assert "Node 'hello' has no title." in issues
    assert "NPC node 'hello' has no dialog text." in issues
    assert "Conditional node 'Check' has no condition." in issues
    assert "Action node 'Reward' has no action." in issues
    assert "Player choice node 'Ask' has a choice with no text." in issues


def test_player_choice_without_choices() -> None:
    tree = _make_valid_tree()
    tree.nodes["ask"].data.choices = []

    issues = validate_tree(tree)

    assert "Player choice node 'Ask' has no choices." in issues
    # The two existing connections now hang off unknown choices
    assert sum("not attached to any of its choices" in issue for issue in issues) == 2


def test_duplicate_choice_ids() -> None:
    tree = _make_valid_tree()
    tree.nodes["ask"].data.choices.append(DialogChoice(id="dup", text="A"))
    tree.nodes["ask"].data.choices.append(DialogChoice(id="dup", text="B"))

    issues = validate_tree(tree)

    assert "Player choice node 'Ask' reuses choice id(s) 'dup'." in issues


def test_dangling_connections() -> None:
    tree = _make_valid_tree()
    tree.connections.append(DialogConnection(id="x1", source="hello", target="ghost"))
    tree.connections.append(DialogConnection(id="x2", source="phantom", target="hello"))

    issues = validate_tree(tree)

    assert "Connection 'x1' from 'Hello' points to missing node 'ghost'." in issues
    assert "Connection 'x2' starts at missing node 'phantom'." in issues


def test_conditional_handles() -> None:
    tree = _make_valid_tree()
    tree.connections.append(DialogConnection(id="x1", source="check", target="done", source_handle="maybe"))
    tree.connections.append(DialogConnection(id="x2", source="check", target="reward", source_handle="true"))

    issues = validate_tree(tree)

    assert "Connection 'x1' from 'Check' must use the 'true' or 'false' handle." in issues
    assert "Conditional node 'Check' has more than one 'true' branch. The first one is used." in issues


def test_unrecognised_expressions() -> None:
    tree = _make_valid_tree()
    tree.nodes["check"].data.content = "player looks tired"
    tree.nodes["reward"].data.content = "addItem map\ngive everyone cake"

    issues = validate_tree(tree)

    assert any("'player looks tired'" in issue and "randomly" in issue for issue in issues)
    assert any("'give everyone cake'" in issue for issue in issues)


def test_dead_end_nodes() -> None:
    tree = _make_valid_tree()
    tree.connections = [conn for conn in tree.connections if conn.source != "reward"]

    issues = validate_tree(tree)

    assert issues == ["Node 'Reward' has no outgoing connections and is not an end node."]


def test_unreachable_nodes() -> None:
    tree = _make_valid_tree()
    tree.add_node(create_node(NodeKind.NPC, "Forgotten", "Hello?", node_id="lost"))
    tree.connect("lost", "done")

    issues = validate_tree(tree)

    assert issues == ["Node 'Forgotten' has no incoming connections and can never be reached."]
