from dataclasses import dataclass
from typing import Optional

VALID_VERBS = {
    "continue",
    "choose",
    "start",
    "restart",
    "stop",
    "history",
    "progress",
    "help",
    "vars",
    "set",
    "goto",
}

# Commands only available in developer mode
DEV_VERBS = {"vars", "set", "goto"}

VERB_ALIASES = {
    "": "continue",
    "c": "continue",
    "next": "continue",
    "r": "restart",
    "reset": "restart",
    "h": "history",
    "p": "progress",
    "?": "help",
    "variables": "vars",
}

@dataclass
class ParsedCommand:
    raw: str
    verb: Optional[str] = None
    choice_index: Optional[int] = None                                          # Zero based
    arguments: tuple[str, ...] = ()
    error: Optional[str] = None

def parse_command(raw: str) -> ParsedCommand:
    raw = raw.strip()
    cmd = ParsedCommand(raw=raw)

    # Choice number
    if raw.isdigit():
        number = int(raw)
        if number < 1:
            cmd.error = "Choices are numbered from 1."
            return cmd
        cmd.verb = "choose"
        cmd.choice_index = number - 1
        return cmd

    tokens = raw.split()
    verb_token = tokens[0].lower() if tokens else ""
    verb = VERB_ALIASES.get(verb_token.lstrip("/"), verb_token.lstrip("/"))
    if verb not in VALID_VERBS or verb == "choose":
        cmd.error = f"Unknown command '{verb_token}'. Enter /help for a list of commands."
        return cmd
    cmd.verb = verb
    cmd.arguments = tuple(tokens[1:])

    # Argument counts
    if verb == "goto" and len(cmd.arguments) != 1:
        cmd.error = "Usage: /GOTO node_id"
    elif verb == "set" and len(cmd.arguments) < 2:
        cmd.error = "Usage: /SET name value"

    return cmd
