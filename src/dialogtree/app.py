from dataclasses import dataclass
from enum import Enum
from typing import Optional
import random
from .commands import DEV_VERBS, ParsedCommand, parse_command
from .engine import SessionStatus, TraversalEngine, TraversalSession
from .expressions import ExpressionEvaluator
from .loader import TreeFile, load_tree
from .model import NodeKind
from .transcript import transcript
from .validation import validate_tree

HISTORY_LENGTH = 5

HELP_TEXT = """\
Commands:
  (enter) or C     Continue to the next node
  1, 2, 3 ...      Pick a response
  /RESTART         Start again from the beginning
  /STOP            Stop the preview
  /START           Start a stopped preview
  /HISTORY         Show the last few steps of the conversation
  /PROGRESS        Show how much of the tree has been visited
  QUIT             Leave the preview"""

DEV_HELP_TEXT = """\
Developer commands:
  /VARS            Show session variables
  /SET name value  Set a variable
  /GOTO node_id    Jump to a node"""

class CommandStatus(Enum):
    OK = "ok"
    NO_EFFECT = "no_effect"
    INVALID = "invalid"

@dataclass
class CommandResult:
    status: CommandStatus
    message: str

def ok_result(message: str) -> CommandResult:
    return CommandResult(status=CommandStatus.OK, message=message)

def no_effect_result(message: str) -> CommandResult:
    return CommandResult(status=CommandStatus.NO_EFFECT, message=message)

def invalid_result(message: str) -> CommandResult:
    return CommandResult(status=CommandStatus.INVALID, message=message)

class PreviewApp:
    """
    Plays a dialog tree one command at a time, the way the editor's preview
    panel does: continue, pick responses, restart, stop and look back at the
    history.
    """
    def __init__(self, tree_file: TreeFile, *, dev_mode: bool = False, seed: Optional[int] = None):
        self.tree = tree_file.tree
        self.characters = tree_file.characters
        self.dev_mode = dev_mode
        self.engine = TraversalEngine(ExpressionEvaluator(rng=random.Random(seed)))
        self.session: TraversalSession = self.engine.start(self.tree)

    def get_intro(self) -> CommandResult:
        return ok_result(self.describe_current_node())

    def describe_current_node(self) -> str:
        session = self.session
        if session.status == SessionStatus.IDLE:
            return "Preview stopped. Enter /START to begin."
        if session.status == SessionStatus.NO_NODES:
            return session.message or "This dialog tree has no nodes."

        node = self.engine.current_node(session, self.tree)
        if node is None:
            return session.message or "The current node no longer exists."

        lines = [f"[{node.kind.value.replace('_', ' ').upper()}] {node.title}"]
        speaker = self.speaker_name(node.data.character)
        if speaker:
            lines.append(f"{speaker}:")
        if node.kind in (NodeKind.NPC, NodeKind.ACTION, NodeKind.CONDITIONAL) and node.data.content:
            lines.append(node.data.content)

        if node.kind == NodeKind.PLAYER_CHOICE:
            lines.append("Choose your response:")
            for option in self.engine.options(session, self.tree):
                suffix = "" if option.enabled else " (not connected)"
                lines.append(f"  {option.index + 1}. {option.choice.text}{suffix}")

        if session.status == SessionStatus.ENDED:
            lines.append(session.message or "This conversation has ended.")
            lines.append("Dialog complete. Enter /RESTART to start over.")
        elif session.status == SessionStatus.STUCK:
            lines.append(f"WARNING: {session.message}")

        return "\n".join(lines)

    def speaker_name(self, character_id: Optional[str]) -> Optional[str]:
        if not character_id:
            return None
        character = next((c for c in self.characters if c.id == character_id), None)
        return character.label if character else None

    def handle_raw_command(self, raw_command: str) -> CommandResult:
        command = parse_command(raw_command)
        if command.error:
            return invalid_result(command.error)

        return self.handle_command(command)

    def handle_command(self, command: ParsedCommand) -> CommandResult:
        if command.verb is None:
            return invalid_result(f"Unknown command '{command.raw}'.")

        if command.verb in DEV_VERBS and not self.dev_mode:
            return invalid_result(f"/{command.verb.upper()} is only available in developer mode (--dev).")

        if command.verb == "continue":
            return self.handle_continue()
        if command.verb == "choose" and command.choice_index is not None:
            return self.handle_choose(command.choice_index)
        if command.verb == "start":
            return self.handle_start()
        if command.verb == "restart":
            return self.handle_restart()
        if command.verb == "stop":
            return self.handle_stop()
        if command.verb == "history":
            return self.handle_history()
        if command.verb == "progress":
            return self.handle_progress()
        if command.verb == "help":
            return ok_result(f"{HELP_TEXT}\n{DEV_HELP_TEXT}" if self.dev_mode else HELP_TEXT)
        if command.verb == "vars":
            return self.handle_dev_vars()
        if command.verb == "set":
            return self.handle_dev_set(command.arguments)
        if command.verb == "goto":
            return self.handle_dev_goto(command.arguments[0])

        return invalid_result(f"Unknown command '{command.raw}'.")

    def check_playing(self) -> Optional[CommandResult]:
        if self.session.status in (SessionStatus.IDLE, SessionStatus.NO_NODES):
            return invalid_result(self.describe_current_node())
        if self.session.status == SessionStatus.ENDED:
            return invalid_result("This conversation has ended. Enter /RESTART to play again.")
        return None

    def handle_continue(self) -> CommandResult:
        error = self.check_playing()
        if error:
            return error

        node = self.engine.current_node(self.session, self.tree)
        if node and node.kind == NodeKind.PLAYER_CHOICE:
            return invalid_result("Choose a response by number.")

        # A node may loop back to itself, so count steps rather than compare ids
        steps = len(self.session.history)
        self.engine.advance(self.session, self.tree)
        if len(self.session.history) == steps:
            return no_effect_result(f"WARNING: {self.session.message}" if self.session.message else "Nothing happened.")

        return ok_result(self.describe_current_node())

    def handle_choose(self, index: int) -> CommandResult:
        error = self.check_playing()
        if error:
            return error

        options = self.engine.options(self.session, self.tree)
        if not options:
            return invalid_result("There is nothing to choose here. Press enter to continue.")
        if index >= len(options):
            return invalid_result(f"Choose a number between 1 and {len(options)}.")
        if not options[index].enabled:
            return no_effect_result(f"'{options[index].choice.text}' is not connected to anything yet.")

        self.engine.advance(self.session, self.tree, index)
        return ok_result(self.describe_current_node())

    def handle_start(self) -> CommandResult:
        if self.session.is_running:
            return invalid_result("The preview is already running. Use /RESTART to start over.")
        self.session = self.engine.start(self.tree)
        return ok_result(self.describe_current_node())

    def handle_restart(self) -> CommandResult:
        self.session = self.engine.restart(self.session, self.tree)
        return ok_result(self.describe_current_node())

    def handle_stop(self) -> CommandResult:
        self.session = self.engine.stop(self.session)
        return ok_result("Preview stopped.")

    def handle_history(self) -> CommandResult:
        lines = transcript(self.session, self.tree, self.characters)
        if not lines:
            return no_effect_result("No conversation history yet.")

        output = ["Conversation history:"]
        for line in lines[-HISTORY_LENGTH:]:
            speaker = f"{line.speaker}: " if line.speaker else ""
            output.append(f"  {speaker}{line.title}")
            if line.choice_text:
                output.append(f"    Choice: {line.choice_text}")
        return ok_result("\n".join(output))

    def handle_progress(self) -> CommandResult:
        visited = len(self.session.visited_node_ids)
        total = len(self.tree.nodes)
        percent = round(self.engine.progress(self.session, self.tree) * 100)
        return ok_result(f"Visited {visited} of {total} nodes ({percent}%).")

    def handle_dev_vars(self) -> CommandResult:
        """Developer cheat: Show variables"""
        if not self.session.variables:
            return ok_result("No variables set.")
        lines = [f"  {name} = {value!r}" for name, value in sorted(self.session.variables.items())]
        return ok_result("Variables:\n" + "\n".join(lines))

    def handle_dev_set(self, arguments: tuple[str, ...]) -> CommandResult:
        """Developer cheat: Set a variable"""
        error = self.check_playing()
        if error:
            return error

        name, value = arguments[0], " ".join(arguments[1:])
        self.engine.evaluator.execute_action(f"setVar {name} {value}", self.session.variables)
        return ok_result(f"{name} = {self.session.variables.get(name)!r}")

    def handle_dev_goto(self, node_id: str) -> CommandResult:
        """Developer cheat: Jump to node"""
        if node_id not in self.tree.nodes:
            return invalid_result(f"'{node_id}' is not a valid node ID")
        if self.engine.goto(self.session, self.tree, node_id):
            return ok_result(self.describe_current_node())

        self.session = self.engine.start(self.tree)
        self.engine.goto(self.session, self.tree, node_id)
        return ok_result(f"Preview restarted.\n{self.describe_current_node()}")

def create_app(args) -> PreviewApp:
    tree_file = load_tree(args.tree, args.tree_name)

    issues = [*tree_file.issues, *validate_tree(tree_file.tree)]
    if issues:
        issue_lines = "\n".join([f"- {issue}" for issue in issues])
        print(f"TREE VALIDATION FAILED\nFile: {args.tree}\n{issue_lines}")

    return PreviewApp(tree_file, dev_mode=args.dev, seed=args.seed)
