"""
Condition and action mini-languages embedded in conditional and action nodes.

Both grammars are closed and matched with a fixed, ordered list of patterns.
Author text is never handed to the Python interpreter.

Conditions (first match wins):
    flag                        truthiness of a variable that exists
    playerHealth > 50           variable compared with an integer
    hasItem('key')              inventory predicate
    questCompleted("main")      quest predicate
    anything else               simulated with a random boolean

Actions (first match wins):
    setVar name value
    addItem name
    removeItem name
    completeQuest name
    modifyHealth -20
    anything else               recorded under action_<millis>
"""
from dataclasses import dataclass
from typing import Callable, MutableMapping, Optional, Protocol, Union
import logging
import operator
import random
import re
import time
from .util import strip_quotes
from .variables import (
    ITEM_PREFIX, QUEST_COMPLETED, QUEST_PREFIX, Value, parse_value, to_bool, to_number
)

logger = logging.getLogger(__name__)

Variables = MutableMapping[str, Value]

MIN_HEALTH = 0
MAX_HEALTH = 100
HEALTH_VARIABLE = "playerHealth"

# Text fragments that suggest the condition refers to live game state
GAME_STATE_HINTS = ("playerHealth", "hasItem", "quest")

COMPARISON_OPERATORS: dict[str, Callable[[float, float], bool]] = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
    "==": operator.eq,
    "!=": operator.ne,
}

IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_]*"
IDENTIFIER_PATTERN = re.compile(rf"^{IDENTIFIER}$")
COMPARISON_PATTERN = re.compile(rf"^({IDENTIFIER})\s*([<>=!]+)\s*([+-]?\d+)$")
PREDICATE_PATTERN = re.compile(rf"^({IDENTIFIER})\(\s*(['\"])(.*?)\2\s*\)$")

SET_VAR_PATTERN = re.compile(r"^setVar\s+(\S+)\s+(.+)$", re.IGNORECASE)
ADD_ITEM_PATTERN = re.compile(r"^addItem\s+(.+)$", re.IGNORECASE)
REMOVE_ITEM_PATTERN = re.compile(r"^removeItem\s+(.+)$", re.IGNORECASE)
COMPLETE_QUEST_PATTERN = re.compile(r"^completeQuest\s+(.+)$", re.IGNORECASE)
MODIFY_HEALTH_PATTERN = re.compile(r"^modifyHealth\s+([+-]?\d+)$", re.IGNORECASE)

class RandomSource(Protocol):
    def random(self) -> float: ...

# Parsed conditions

@dataclass(frozen=True)
class VariableCondition:
    name: str

@dataclass(frozen=True)
class ComparisonCondition:
    name: str
    op: str
    operand: int

@dataclass(frozen=True)
class PredicateCondition:
    function: str
    argument: str

@dataclass(frozen=True)
class UnresolvedCondition:
    """Condition text outside the grammar. Simulated at evaluation time."""
    text: str

    @property
    def mentions_game_state(self) -> bool:
        return any(hint in self.text for hint in GAME_STATE_HINTS)

Condition = Union[VariableCondition, ComparisonCondition, PredicateCondition, UnresolvedCondition]

# Parsed actions

@dataclass(frozen=True)
class SetVariable:
    name: str
    value: Value

@dataclass(frozen=True)
class SetItem:
    item: str
    held: bool

@dataclass(frozen=True)
class CompleteQuest:
    quest: str

@dataclass(frozen=True)
class ModifyHealth:
    delta: int

@dataclass(frozen=True)
class UnknownAction:
    text: str

Action = Union[SetVariable, SetItem, CompleteQuest, ModifyHealth, UnknownAction]

def parse_condition(text: str) -> Condition:
    text = text.strip()

    if IDENTIFIER_PATTERN.match(text):
        return VariableCondition(text)

    match = COMPARISON_PATTERN.match(text)
    if match:
        return ComparisonCondition(name=match[1], op=match[2], operand=int(match[3]))

    match = PREDICATE_PATTERN.match(text)
    if match:
        return PredicateCondition(function=match[1], argument=match[3])

    return UnresolvedCondition(text)

def parse_action(text: str) -> Action:
    text = text.strip()

    match = SET_VAR_PATTERN.match(text)
    if match:
        raw_value = match[2].strip()
        value = parse_value(raw_value)
        if isinstance(value, str):
            value = strip_quotes(value)
        return SetVariable(name=strip_quotes(match[1]), value=value)

    match = ADD_ITEM_PATTERN.match(text)
    if match:
        return SetItem(item=strip_quotes(match[1].strip()), held=True)

    match = REMOVE_ITEM_PATTERN.match(text)
    if match:
        return SetItem(item=strip_quotes(match[1].strip()), held=False)

    match = COMPLETE_QUEST_PATTERN.match(text)
    if match:
        return CompleteQuest(quest=strip_quotes(match[1].strip()))

    match = MODIFY_HEALTH_PATTERN.match(text)
    if match:
        return ModifyHealth(delta=int(match[1]))

    return UnknownAction(text)

def script_lines(script: str) -> list[str]:
    """Statements of a multi-line action script. Blank lines and '#' comments are skipped."""
    lines = [line.strip() for line in script.split("\n")]
    return [line for line in lines if line and not line.startswith("#")]

class ExpressionEvaluator:
    """
    Evaluates condition strings and executes action strings against a
    variable store.
    Neither operation raises. Conditions that cannot be resolved are
    simulated with the injected random source, so tests and previews can be
    made reproducible by seeding it.
    """
    def __init__(self, rng: Optional[RandomSource] = None, clock: Optional[Callable[[], float]] = None):
        self.rng: RandomSource = rng if rng is not None else random.Random()
        self.clock: Callable[[], float] = clock if clock is not None else time.time

    def evaluate_condition(self, text: str, variables: Variables) -> bool:
        try:
            return self.evaluate(parse_condition(text), variables)
        except Exception as exc:
            logger.warning("Condition '%s' failed to evaluate: %s", text, exc)
            return False

    def evaluate(self, condition: Condition, variables: Variables) -> bool:
        if isinstance(condition, VariableCondition):
            if condition.name in variables:
                return to_bool(variables[condition.name])
            # Unknown variable. Treat like any other unresolvable condition.
            return self.simulate(UnresolvedCondition(condition.name))

        if isinstance(condition, ComparisonCondition):
            compare = COMPARISON_OPERATORS.get(condition.op)
            if compare is None:
                return False
            return compare(to_number(variables.get(condition.name)), condition.operand)

        if isinstance(condition, PredicateCondition):
            if condition.function == "hasItem":
                return to_bool(variables.get(ITEM_PREFIX + condition.argument))
            if condition.function == "questCompleted":
                return variables.get(QUEST_PREFIX + condition.argument) == QUEST_COMPLETED
            return False

        return self.simulate(condition)

    def simulate(self, condition: UnresolvedCondition) -> bool:
        # The editor cannot see the game's real state, so flip a coin
        result = self.rng.random() < 0.5
        if condition.mentions_game_state:
            logger.debug("Simulating game state condition '%s' as %s", condition.text, result)
        else:
            logger.debug("Unrecognised condition '%s' simulated as %s", condition.text, result)
        return result

    def execute_action(self, text: str, variables: Variables) -> Variables:
        try:
            self.apply(parse_action(text), variables)
        except Exception as exc:
            logger.debug("Action '%s' failed: %s", text, exc)
            variables[self.record_key("error", variables)] = f"{text.strip()}: {exc}"
        return variables

    def execute_script(self, script: str, variables: Variables) -> Variables:
        for line in script_lines(script):
            self.execute_action(line, variables)
        return variables

    def apply(self, action: Action, variables: Variables):
        if isinstance(action, SetVariable):
            variables[action.name] = action.value
        elif isinstance(action, SetItem):
            variables[ITEM_PREFIX + action.item] = action.held
        elif isinstance(action, CompleteQuest):
            variables[QUEST_PREFIX + action.quest] = QUEST_COMPLETED
        elif isinstance(action, ModifyHealth):
            current = to_number(variables[HEALTH_VARIABLE]) if HEALTH_VARIABLE in variables else MAX_HEALTH
            health = current + action.delta
            variables[HEALTH_VARIABLE] = max(MIN_HEALTH, min(MAX_HEALTH, health))
        else:
            # Record the raw text so the effect is visible in the store
            logger.debug("Unrecognised action '%s' recorded", action.text)
            variables[self.record_key("action", variables)] = action.text

    def timestamp(self) -> int:
        return round(self.clock() * 1000)

    def record_key(self, prefix: str, variables: Variables) -> str:
        # Several lines of one script usually share a millisecond
        base = f"{prefix}_{self.timestamp()}"
        key = base
        suffix = 0
        while key in variables:
            suffix += 1
            key = f"{base}_{suffix}"
        return key
