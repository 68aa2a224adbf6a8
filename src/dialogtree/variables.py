from typing import Optional, Union
import re

Value = Union[str, int, float, bool]

ITEM_PREFIX = "item_"
QUEST_PREFIX = "quest_"
QUEST_COMPLETED = "completed"

# Strings that read as false in a truthiness context
FALSY_TOKENS = {"", "false", "0", "no", "off", "none", "null"}

# Plain decimal literals only. Rejects nan, inf and digit separators
INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
DECIMAL_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")

class VariableStore(dict[str, Value]):
    """
    The flat variable environment of a traversal session.
    No schema: a variable may hold a number at one point and a string later.
    Inventory lives under 'item_<name>' booleans and quest state under
    'quest_<name>' strings.
    """

    def set(self, name: str, value: Value):
        self[name] = value

    def number(self, name: str) -> float:
        return to_number(self.get(name))

    def truthy(self, name: str) -> bool:
        return to_bool(self.get(name))

    def has_item(self, item: str) -> bool:
        return self.truthy(ITEM_PREFIX + item)

    def quest_state(self, quest: str) -> Optional[Value]:
        return self.get(QUEST_PREFIX + quest)

def to_number(value: Optional[Value]) -> float:
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (int, float)):
        return value
    text = value.strip()
    if not DECIMAL_PATTERN.match(text):
        return 0
    return float(text)

def to_bool(value: Optional[Value]) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return value.strip().lower() not in FALSY_TOKENS

def parse_value(raw: str) -> Value:
    """Number if the text parses as one, otherwise the text itself."""
    text = raw.strip()
    if INTEGER_PATTERN.match(text):
        return int(text)
    if DECIMAL_PATTERN.match(text):
        return float(text)
    return raw
