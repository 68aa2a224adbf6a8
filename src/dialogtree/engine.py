from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional
import logging
from .expressions import ExpressionEvaluator
from .graph import find_node, first_target, outgoing, outgoing_for_handle, resolve_targets
from .model import (
    DialogChoice, DialogConnection, DialogNode, DialogTree, NodeKind, TRUE_HANDLE, FALSE_HANDLE
)
from .variables import VariableStore

logger = logging.getLogger(__name__)

LINEAR_KINDS = {NodeKind.NPC, NodeKind.ACTION}

class SessionStatus(Enum):
    IDLE = "idle"
    NO_NODES = "no_nodes"
    RUNNING = "running"
    STUCK = "stuck"
    ENDED = "ended"

@dataclass
class HistoryEntry:
    node_id: str
    choice_text: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

@dataclass
class TraversalSession:
    current_node_id: Optional[str] = None
    visited_node_ids: set[str] = field(default_factory=set)
    variables: VariableStore = field(default_factory=VariableStore)
    history: list[HistoryEntry] = field(default_factory=list)
    status: SessionStatus = SessionStatus.IDLE
    message: Optional[str] = None                                               # Why the session is stuck, or the closing message once ended

    @property
    def is_running(self) -> bool:
        return self.status in (SessionStatus.RUNNING, SessionStatus.STUCK)

@dataclass
class ChoiceOption:
    index: int
    choice: DialogChoice
    connections: list[DialogConnection]
    target: Optional[DialogNode] = None

    @property
    def enabled(self) -> bool:
        return self.target is not None

class TraversalEngine:
    """
    Walks a dialog tree at play time.
    The tree is only ever read. All mutable state lives in the
    TraversalSession, so several sessions can share one tree.
    Malformed or half-connected trees never raise: the session is marked
    STUCK instead and the reason is left in session.message.
    """
    def __init__(self, evaluator: Optional[ExpressionEvaluator] = None, clock: Callable[[], datetime] = datetime.now):
        self.evaluator = evaluator or ExpressionEvaluator()
        self.clock = clock

    def start(self, tree: DialogTree) -> TraversalSession:
        start_node = self.resolve_start_node(tree)
        if start_node is None:
            return TraversalSession(status=SessionStatus.NO_NODES, message="This dialog tree has no nodes.")

        session = TraversalSession(
            current_node_id=start_node.id,
            visited_node_ids={start_node.id},
            history=[HistoryEntry(start_node.id, timestamp=self.clock())],
        )
        self.update_status(session, tree)
        return session

    def stop(self, session: TraversalSession) -> TraversalSession:
        return TraversalSession()

    def restart(self, session: TraversalSession, tree: DialogTree) -> TraversalSession:
        return self.start(tree)

    def resolve_start_node(self, tree: DialogTree) -> Optional[DialogNode]:
        if tree.start_node_id and tree.start_node_id in tree.nodes:
            return tree.nodes[tree.start_node_id]

        # Fall back to the first spoken line or action, then to anything at all
        nodes = list(tree.nodes.values())
        return next((node for node in nodes if node.kind in LINEAR_KINDS), None) or next(iter(nodes), None)

    def current_node(self, session: TraversalSession, tree: DialogTree) -> Optional[DialogNode]:
        return find_node(tree, session.current_node_id)

    def outgoing_connections(self, session: TraversalSession, tree: DialogTree) -> list[DialogConnection]:
        if session.current_node_id is None:
            return []
        return outgoing(tree, session.current_node_id)

    def options(self, session: TraversalSession, tree: DialogTree) -> list[ChoiceOption]:
        node = self.current_node(session, tree)
        if node is None or node.kind != NodeKind.PLAYER_CHOICE:
            return []

        options = []
        for index, choice in enumerate(node.data.choices):
            connections = outgoing_for_handle(tree, node.id, choice.id)
            options.append(ChoiceOption(
                index=index,
                choice=choice,
                connections=connections,
                target=first_target(tree, connections),
            ))
        return options

    def progress(self, session: TraversalSession, tree: DialogTree) -> float:
        if not tree.nodes:
            return 0.0
        return len(session.visited_node_ids) / len(tree.nodes)

    def advance(self, session: TraversalSession, tree: DialogTree, selection: Optional[int] = None) -> TraversalSession:
        if not session.is_running:
            return session

        node = self.current_node(session, tree)
        if node is None:
            return self.mark_stuck(session, f"Node '{session.current_node_id}' no longer exists.")

        if node.kind == NodeKind.END:
            session.status = SessionStatus.ENDED
            return session

        if node.kind in LINEAR_KINDS:
            return self.advance_linear(session, tree, node)
        if node.kind == NodeKind.PLAYER_CHOICE:
            return self.advance_choice(session, tree, node, selection)
        if node.kind == NodeKind.CONDITIONAL:
            return self.advance_conditional(session, tree, node)

        return self.mark_stuck(session, f"Unsupported node kind '{node.kind}'.")

    def advance_linear(self, session: TraversalSession, tree: DialogTree, node: DialogNode) -> TraversalSession:
        target = first_target(tree, outgoing(tree, node.id))
        if target is None:
            return self.mark_stuck(session, f"'{node.title}' has no connection to continue to.")

        if node.kind == NodeKind.ACTION:
            self.evaluator.execute_script(node.content, session.variables)

        return self.move_to(session, tree, target)

    def advance_choice(self, session: TraversalSession, tree: DialogTree, node: DialogNode, selection: Optional[int]) -> TraversalSession:
        options = self.options(session, tree)
        if selection is None or not 0 <= selection < len(options):
            logger.debug("Refused selection %s at '%s' (%d choices)", selection, node.id, len(options))
            return session

        option = options[selection]
        if option.target is None:
            logger.debug("Refused choice '%s' at '%s': no connection", option.choice.text, node.id)
            return session

        return self.move_to(session, tree, option.target, option.choice.text)

    def advance_conditional(self, session: TraversalSession, tree: DialogTree, node: DialogNode) -> TraversalSession:
        result = self.evaluator.evaluate_condition(node.content, session.variables)
        handle = TRUE_HANDLE if result else FALSE_HANDLE

        # With duplicate branches the first connection in list order wins
        target = first_target(tree, outgoing_for_handle(tree, node.id, handle))
        if target is None:
            return self.mark_stuck(
                session,
                f"Condition '{node.content}' was {handle.upper()} but no '{handle}' branch is connected."
            )

        return self.move_to(session, tree, target, f"Condition: {handle.upper()}")

    def goto(self, session: TraversalSession, tree: DialogTree, node_id: str) -> bool:
        node = find_node(tree, node_id)
        # Ended sessions may jump back in, idle ones have nothing to jump from
        if node is None or session.current_node_id is None:
            return False
        self.move_to(session, tree, node)
        return True

    def move_to(self, session: TraversalSession, tree: DialogTree, node: DialogNode, choice_text: Optional[str] = None) -> TraversalSession:
        session.current_node_id = node.id
        session.visited_node_ids.add(node.id)
        session.history.append(HistoryEntry(node.id, choice_text, self.clock()))
        self.update_status(session, tree)
        return session

    def update_status(self, session: TraversalSession, tree: DialogTree):
        node = self.current_node(session, tree)
        if node is None:
            self.mark_stuck(session, f"Node '{session.current_node_id}' no longer exists.")
            return

        session.status = SessionStatus.RUNNING
        session.message = None

        if node.kind == NodeKind.END:
            session.status = SessionStatus.ENDED
            session.message = node.data.content or "This conversation has ended."
        elif node.kind in LINEAR_KINDS and not resolve_targets(tree, outgoing(tree, node.id)):
            self.mark_stuck(session, f"'{node.title}' has no connection to continue to.")
        elif node.kind == NodeKind.PLAYER_CHOICE and not any(option.enabled for option in self.options(session, tree)):
            self.mark_stuck(session, f"'{node.title}' has no connected choices.")

    def mark_stuck(self, session: TraversalSession, message: str) -> TraversalSession:
        logger.debug("Session stuck: %s", message)
        session.status = SessionStatus.STUCK
        session.message = message
        return session
