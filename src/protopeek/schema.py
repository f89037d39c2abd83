"""
Best-effort .proto definition scanner.

Pulls `message` and `enum` blocks out of definition text with regular
expressions. There is no grammar behind it: the first closing brace ends a
block, nested declarations are not tracked, and malformed text just gives
fewer (or no) entries. Output is meant for hydrating decoded records, not
for validating schemas.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Optional

LABELS = ("repeated", "optional", "required")

_LINE_COMMENT = re.compile(r'//.*?$', re.MULTILINE)
_BLOCK_COMMENT = re.compile(r'/\*.*?\*/', re.DOTALL)

_MESSAGE = re.compile(r'\bmessage\s+(?P<name>[\w.]+)\s*\{(?P<content>.*?)\}', re.DOTALL)
_ENUM = re.compile(r'\benum\s+(?P<name>[\w.]+)\s*\{(?P<content>.*?)\}', re.DOTALL)
# type may carry a label ("repeated uint32") or be a map<K, V>
_MESSAGE_FIELD = re.compile(
    r'(?P<type>(?:(?:repeated|optional|required)\s+)?[\w.]+(?:\s*<[^<>]*>)?)'
    r'\s+(?P<name>\w+)\s*=\s*(?P<number>\d+)\s*[;\[]'
)
_ENUM_VALUE = re.compile(r'(?P<name>\w+)\s*=\s*(?P<number>-?\d+)\s*[;\[]')


@dataclass(frozen=True)
class FieldDef:
    type: str  # declared type, label included: "repeated uint32"
    name: str

    @property
    def repeated(self) -> bool:
        return self.type.startswith("repeated ")

    @property
    def base_type(self) -> str:
        """Declared type without its label."""
        parts = self.type.split(" ", 1)
        if len(parts) == 2 and parts[0] in LABELS:
            return parts[1]
        return self.type


@dataclass
class Definitions:
    messages: Dict[str, Dict[int, FieldDef]] = field(default_factory=dict)
    enums: Dict[str, Dict[int, str]] = field(default_factory=dict)

    def _lookup(self, table, type_name):
        if type_name in table:
            return table[type_name]
        # "pkg.Outer.Inner" -> "Inner"
        short = type_name.lstrip(".").rsplit(".", 1)[-1]
        return table.get(short)

    def find_message(self, type_name: str) -> Optional[Dict[int, FieldDef]]:
        return self._lookup(self.messages, type_name)

    def find_enum(self, type_name: str) -> Optional[Dict[int, str]]:
        return self._lookup(self.enums, type_name)

    def to_dict(self):
        return {
            "messages": {
                name: {number: {"type": f.type, "name": f.name} for number, f in fields.items()}
                for name, fields in self.messages.items()
            },
            "enums": {name: dict(values) for name, values in self.enums.items()},
        }


def _strip_comments(text: str) -> str:
    text = _BLOCK_COMMENT.sub('', text)
    return _LINE_COMMENT.sub('', text)


def _parse_fields(content: str) -> Dict[int, FieldDef]:
    fields = {}
    for m in _MESSAGE_FIELD.finditer(content):
        type_str = " ".join(m.group('type').split())
        fields[int(m.group('number'))] = FieldDef(type=type_str, name=m.group('name'))
    return fields


def _parse_enum_values(content: str) -> Dict[int, str]:
    values = {}
    for m in _ENUM_VALUE.finditer(content):
        values[int(m.group('number'))] = m.group('name')
    return values


def parse_definition(text: str) -> Definitions:
    """Extract message fields and enum values from .proto source text."""
    text = _strip_comments(text)
    defs = Definitions()
    for m in _MESSAGE.finditer(text):
        defs.messages[m.group('name')] = _parse_fields(m.group('content'))
    for m in _ENUM.finditer(text):
        defs.enums[m.group('name')] = _parse_enum_values(m.group('content'))
    return defs


def parse_file(path) -> Definitions:
    with open(path, 'r', encoding='utf-8') as f:
        return parse_definition(f.read())
