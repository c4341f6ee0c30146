"""Smart folder rule evaluation.

This module maps an asset's metadata to a destination category by
evaluating the library's smart folder rules:

- Validating rule properties, methods and values
- Compiling every smart folder once, up front
- Evaluating an asset against the compiled tree

A SmartFolderFilter is built once per export and shared, read-only,
by every worker thread.
"""

from typing import Any, NamedTuple, Optional

from ..library.models import AssetInfo, LibraryInfo, SmartFolder
from .exceptions import InvalidRule


# Properties holding a list of strings
LIST_PROPERTIES = {'tags', 'folders'}

# Properties holding free text
TEXT_PROPERTIES = {'name', 'ext', 'annotation', 'url'}

# Properties holding integers
NUMERIC_PROPERTIES = {'size', 'width', 'height', 'star'}

VALID_PROPERTIES = LIST_PROPERTIES | TEXT_PROPERTIES | NUMERIC_PROPERTIES

# Rule property name to AssetInfo attribute
PROPERTY_ALIASES = {
    'rating': 'star',
}

LIST_METHODS = {'union', 'intersection', 'equal', 'empty', 'not-empty'}

TEXT_METHODS = {'contain', 'uncontain', 'is', 'isNot', 'startWith', 'endWith'}

NUMERIC_METHODS = {'=', '!=', '>', '<', '>=', '<='}

CONJUNCTIONS = {'AND', 'OR'}


class Rule(NamedTuple):
    """A validated rule: one property test."""

    property: str
    method: str
    value: Any


class Condition(NamedTuple):
    """A group of rules joined by AND/OR, optionally negated."""

    rules: tuple[Rule, ...]
    match: str = 'AND'
    negate: bool = False


class CompiledFolder(NamedTuple):
    name: str
    conditions: tuple[Condition, ...]
    children: tuple["CompiledFolder", ...]
    error: Optional[InvalidRule] = None


def _safe_segment(name: str) -> str:
    """Folder names become path segments; keep them to one level."""
    segment = name.replace('/', '_').replace('\\', '_').strip()
    if segment in ('', '.', '..'):
        return '_'
    return segment


def validate_rule(data: dict[str, Any], folder_ids: frozenset[str]) -> Rule:
    """Validate a raw rule and return it in normalized form.

    Args:
        data: Rule object with ``property``, ``method`` and ``value``
        folder_ids: Ids of the library's physical folders

    Returns:
        Normalized Rule

    Raises:
        ValueError: If the property is unknown, the method does not apply
            to the property, the value has the wrong type, or a folder
            rule references a folder the library does not define
    """
    if not isinstance(data, dict):
        raise ValueError(f"Rule must be an object, got {data!r}")

    prop = PROPERTY_ALIASES.get(data.get('property'), data.get('property'))
    method = data.get('method')
    value = data.get('value')

    if prop not in VALID_PROPERTIES:
        raise ValueError(f"Invalid property: {data.get('property')!r}")

    if prop in LIST_PROPERTIES:
        if method not in LIST_METHODS:
            raise ValueError(
                f"Method '{method}' not valid for list property '{prop}'. "
                f"Use one of: {sorted(LIST_METHODS)}"
            )
        if method in ('empty', 'not-empty'):
            return Rule(prop, method, frozenset())
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValueError(f"Value for '{prop}' must be a list of strings, got {value!r}")
        if prop == 'folders':
            undefined = [v for v in value if v not in folder_ids]
            if undefined:
                raise ValueError(f"Rule references undefined folder(s): {undefined}")
            return Rule(prop, method, frozenset(value))
        return Rule(prop, method, frozenset(v.lower() for v in value))

    if prop in TEXT_PROPERTIES:
        if method not in TEXT_METHODS:
            raise ValueError(
                f"Method '{method}' not valid for text property '{prop}'. "
                f"Use one of: {sorted(TEXT_METHODS)}"
            )
        if not isinstance(value, str):
            raise ValueError(f"Value for '{prop}' must be a string, got {value!r}")
        value = value.lower()
        if prop == 'ext':
            value = value.lstrip('.')
        return Rule(prop, method, value)

    if method not in NUMERIC_METHODS:
        raise ValueError(
            f"Method '{method}' not valid for numeric property '{prop}'. "
            f"Use one of: {sorted(NUMERIC_METHODS)}"
        )
    if isinstance(value, bool):
        raise ValueError(f"Value '{value}' is not a valid number for '{prop}'")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Value '{value}' is not a valid number for '{prop}'")
    return Rule(prop, method, number)


def validate_condition(data: dict[str, Any], folder_ids: frozenset[str]) -> Condition:
    """Validate a raw condition (``rules``, ``match``, ``boolean``)."""
    match = str(data.get('match', 'AND')).upper()
    if match not in CONJUNCTIONS:
        raise ValueError(f"Condition match must be 'AND' or 'OR', got: {data.get('match')!r}")

    boolean = data.get('boolean', 'TRUE')
    if isinstance(boolean, bool):
        negate = not boolean
    elif str(boolean).upper() in ('TRUE', 'FALSE'):
        negate = str(boolean).upper() == 'FALSE'
    else:
        raise ValueError(f"Condition boolean must be 'TRUE' or 'FALSE', got: {boolean!r}")

    rules = data.get('rules') or []
    if not isinstance(rules, list):
        raise ValueError("Condition rules must be a list")

    return Condition(
        rules=tuple(validate_rule(r, folder_ids) for r in rules),
        match=match,
        negate=negate,
    )


def _matches_rule(rule: Rule, asset: AssetInfo) -> bool:
    actual = asset.attribute(rule.property)

    if rule.property in LIST_PROPERTIES:
        if rule.property == 'tags':
            values = {v.lower() for v in actual}
        else:
            values = set(actual)
        if rule.method == 'union':
            return bool(values & rule.value)
        if rule.method == 'intersection':
            return rule.value <= values
        if rule.method == 'equal':
            return values == rule.value
        if rule.method == 'empty':
            return not values
        return bool(values)  # not-empty

    if rule.property in TEXT_PROPERTIES:
        text = (actual or '').lower()
        if rule.method == 'contain':
            return rule.value in text
        if rule.method == 'uncontain':
            return rule.value not in text
        if rule.method == 'is':
            return text == rule.value
        if rule.method == 'isNot':
            return text != rule.value
        if rule.method == 'startWith':
            return text.startswith(rule.value)
        return text.endswith(rule.value)  # endWith

    number = actual or 0
    if rule.method == '=':
        return number == rule.value
    if rule.method == '!=':
        return number != rule.value
    if rule.method == '>':
        return number > rule.value
    if rule.method == '<':
        return number < rule.value
    if rule.method == '>=':
        return number >= rule.value
    return number <= rule.value  # <=


def _matches_condition(condition: Condition, asset: AssetInfo) -> bool:
    results = (_matches_rule(rule, asset) for rule in condition.rules)
    matched = all(results) if condition.match == 'AND' else any(results)
    return matched != condition.negate


class SmartFolderFilter:
    """Resolve an asset's category from the library's smart folders.

    Every rule is validated when the filter is built. A smart folder with
    invalid rules is kept and raises InvalidRule when evaluation reaches
    it, so a broken folder fails the assets that hit it and nothing else.

    Top-level smart folders are tried in document order and the first
    match wins. Children are only tried when their parent matches, and
    the deepest matching child gives the category. A smart folder without
    conditions never matches by itself but still groups its children.
    """

    def __init__(self, library_info: LibraryInfo):
        self._folders = tuple(
            self._compile(folder, library_info.folder_ids)
            for folder in library_info.smart_folders
        )

    @classmethod
    def _compile(cls, folder: SmartFolder, folder_ids: frozenset[str]) -> CompiledFolder:
        children = tuple(cls._compile(child, folder_ids) for child in folder.children)
        try:
            conditions = tuple(validate_condition(c, folder_ids) for c in folder.conditions)
        except ValueError as e:
            return CompiledFolder(folder.name, (), children, InvalidRule(folder.name, str(e)))
        return CompiledFolder(folder.name, conditions, children)

    @property
    def errors(self) -> list[InvalidRule]:
        """Every rule error found while compiling, parents before children."""
        found = []
        stack = list(reversed(self._folders))
        while stack:
            folder = stack.pop()
            if folder.error is not None:
                found.append(folder.error)
            stack.extend(reversed(folder.children))
        return found

    def _match(self, folder: CompiledFolder, asset: AssetInfo) -> Optional[list[str]]:
        if folder.error is not None:
            # Fresh instance per raise; the filter is shared across threads
            raise InvalidRule(folder.error.folder_name, folder.error.reason)

        if folder.conditions:
            if not all(_matches_condition(c, asset) for c in folder.conditions):
                return None
            matched_self = True
        else:
            matched_self = False

        for child in folder.children:
            child_path = self._match(child, asset)
            if child_path is not None:
                return [_safe_segment(folder.name)] + child_path

        return [_safe_segment(folder.name)] if matched_self else None

    def evaluate(self, asset: AssetInfo) -> str:
        """Return the category path for an asset, or '' if nothing matches.

        Raises:
            InvalidRule: If evaluation reaches a smart folder with invalid rules
        """
        for folder in self._folders:
            path = self._match(folder, asset)
            if path is not None:
                return '/'.join(path)
        return ''
