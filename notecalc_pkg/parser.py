"""Component parser: expression text -> ExpressionComponent tree.

This module provides:
- tokenize(): lexer for numbers, units, phrase identifiers, currency symbols,
  percentages, brackets, ranges and ISO dates / clock times
- parse(): builds the flat component list with nested groups, function calls,
  list literals and list access
- split_top_level_commas(), is_balanced(): string helpers shared by the
  solver and the line classifier
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from . import config
from .literals import parse_literal, parse_literal_or_error
from .temporal import DateValue, TimeValue, parse_zone
from .types import ParseError
from .units import is_unit_string
from .values import SemanticValue


@dataclass(frozen=True)
class Token:
    type: str
    value: str
    start: int
    end: int


@dataclass(frozen=True)
class FunctionArgument:
    """One call argument, optionally named (``f(x: 2)``)."""

    components: tuple["ExpressionComponent", ...]
    name: str | None = None


@dataclass(frozen=True)
class ListAccess:
    """``base[index]`` or ``base[start..end]``."""

    base: "ExpressionComponent"
    kind: str  # "index" or "slice"
    index: tuple["ExpressionComponent", ...] = ()
    start: tuple["ExpressionComponent", ...] = ()
    end: tuple["ExpressionComponent", ...] = ()


@dataclass(frozen=True)
class ExpressionComponent:
    """Immutable node of a parsed expression.

    ``type`` is one of literal, variable, operator, function, parentheses,
    list or listAccess.
    """

    type: str
    value: str
    parsed_value: SemanticValue | None = None
    children: tuple["ExpressionComponent", ...] = ()
    args: tuple[FunctionArgument, ...] = ()
    access: ListAccess | None = None

    def __str__(self) -> str:
        return components_to_text((self,))


OPERATOR_CHARS = "+-*/^"
_OPERATOR_ALIASES = {"×": "*", "·": "*", "÷": "/", "−": "-"}
_IDENT_START = re.compile(r"[A-Za-z_]")
_IDENT_CHAR = re.compile(r"[A-Za-z0-9_]")
UNIT_TOKEN_RE = re.compile(
    r"[A-Za-z°µμΩ][A-Za-z0-9°µμΩ]*(?:\^-?\d+)?"
    r"(?:[/*·][A-Za-z°µμΩ][A-Za-z0-9°µμΩ]*(?:\^-?\d+)?)*"
)
BUSINESS_DAYS_RE = re.compile(r"business\s+days?\b", re.IGNORECASE)
ISO_DATE_TOKEN_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})(?:[ T](\d{2}):(\d{2}))?(?:\s*(Z|UTC|GMT|[+-]\d{2}:\d{2})\b)?",
)
CLOCK_TIME_TOKEN_RE = re.compile(r"\d{1,2}:\d{2}(?::\d{2})?(?![\d:])")
GROUPED_NUMBER_RE = re.compile(r"\d{1,3}(?:,\d{3})+(?![\d,])")
RANGE_FUNCTION = "__rangeLiteral"


def is_balanced(input_str: str) -> tuple[bool, int | None]:
    """Check if parentheses/brackets are balanced. Returns (is_balanced, error_position)."""
    pairs = {"(": ")", "[": "]", "{": "}"}
    stack: list[tuple[str, int]] = []
    for i, char in enumerate(input_str):
        if char in pairs:
            stack.append((char, i))
        elif char in pairs.values():
            if not stack:
                return False, i
            opening, _ = stack.pop()
            if pairs[opening] != char:
                return False, i
    if stack:
        return False, stack[0][1]
    return True, None


def split_top_level_commas(input_str: str) -> list[str]:
    """Split string by commas that are not inside (), [], or {}."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    for char in input_str:
        if char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        if char in "([{":
            depth += 1
        elif char in ")]}":
            depth = max(0, depth - 1)
        current.append(char)
    parts.append("".join(current).strip())
    return [part for part in parts if part]


def find_top_level_keyword(text: str, keyword: str, last: bool = False) -> int:
    """Index of ``keyword`` as a whole word outside brackets, or -1."""
    pattern = re.compile(rf"(?<![A-Za-z0-9_]){re.escape(keyword)}(?![A-Za-z0-9_])", re.IGNORECASE)
    depth = 0
    depth_at: list[int] = []
    for char in text:
        if char in "([{":
            depth += 1
        elif char in ")]}":
            depth = max(0, depth - 1)
        depth_at.append(depth)
    found = -1
    for match in pattern.finditer(text):
        if depth_at[match.start()] == 0:
            found = match.start()
            if not last:
                return found
    return found


# -- ranges -----------------------------------------------------------------------

def _skip_ws(text: str, index: int) -> int:
    while index < len(text) and text[index].isspace():
        index += 1
    return index


def _keyword_at(text: str, index: int, keyword: str) -> bool:
    if text[index:index + len(keyword)].lower() != keyword:
        return False
    after = text[index + len(keyword):index + len(keyword) + 1]
    before = text[index - 1:index] if index > 0 else ""
    return not _IDENT_CHAR.match(after or " ") and not _IDENT_CHAR.match(before or " ")


def _left_endpoint(text: str, range_index: int) -> tuple[str, int] | None:
    pos = range_index - 1
    while pos >= 0 and text[pos].isspace():
        pos -= 1
    if pos < 0:
        return None
    if text[pos] == ")":
        depth = 1
        pos -= 1
        while pos >= 0 and depth > 0:
            if text[pos] == ")":
                depth += 1
            elif text[pos] == "(":
                depth -= 1
            pos -= 1
        if depth:
            return None
        start = pos + 1
    else:
        boundary = pos
        while boundary >= 0 and text[boundary] not in ",([{+-*/^=":
            boundary -= 1
        start = boundary + 1
        # keep a sign that belongs to the number ("-3..3", "(-3..3)")
        if start > 0 and text[start - 1] in "+-":
            before = text[:start - 1].rstrip()
            if not before or before[-1] in ",([{=":
                start -= 1
    segment = text[start:range_index].strip()
    return (segment, start) if segment else None


def _right_endpoint(text: str, index: int) -> tuple[str, int] | None:
    pos = _skip_ws(text, index)
    if pos >= len(text):
        return None
    if text[pos] == "(":
        depth, end = 1, pos + 1
        while end < len(text) and depth > 0:
            if text[end] == "(":
                depth += 1
            elif text[end] == ")":
                depth -= 1
            end += 1
        if depth:
            return None
        return text[pos:end].strip(), end
    end = pos
    while end < len(text):
        char = text[end]
        if char in ",)]}+-*/^=":
            if char in "+-" and end == pos:
                end += 1
                continue
            break
        if _keyword_at(text, end, "step"):
            break
        end += 1
    segment = text[pos:end].strip()
    return (segment, end) if segment else None


def rewrite_ranges(expression: str) -> str:
    """Rewrite ``a..b [step s]`` outside brackets into ``__rangeLiteral(a, b[, s])``."""
    if ".." not in expression:
        return expression
    result: list[str] = []
    last = 0
    cursor = 0
    square = 0
    while cursor < len(expression):
        char = expression[cursor]
        if char == "[":
            square += 1
        elif char == "]":
            square = max(0, square - 1)
        if square == 0 and expression.startswith("..", cursor):
            left = _left_endpoint(expression, cursor)
            right = _right_endpoint(expression, cursor + 2) if left else None
            if left and right:
                end = right[1]
                parts = [left[0], right[0]]
                after = _skip_ws(expression, end)
                if _keyword_at(expression, after, "step"):
                    step = _right_endpoint(expression, after + 4)
                    if step is None:
                        raise ParseError("Range step is missing a value", "INVALID_RANGE")
                    parts.append(step[0])
                    end = step[1]
                result.append(expression[last:left[1]])
                result.append(f"{RANGE_FUNCTION}({', '.join(parts)})")
                cursor = last = end
                continue
        cursor += 1
    result.append(expression[last:])
    return "".join(result)


# -- tokenizer --------------------------------------------------------------------

def tokenize(expression: str) -> list[Token]:
    """Split ``expression`` into tokens.

    Raises:
        ParseError: On characters that cannot start any token
    """
    tokens: list[Token] = []
    pos = 0
    depth = 0
    last_type: str | None = None
    length = len(expression)

    def push(token_type: str, value: str, start: int, end: int) -> None:
        nonlocal last_type
        tokens.append(Token(token_type, value, start, end))
        last_type = token_type

    while pos < length:
        char = expression[pos]
        if char.isspace():
            pos += 1
            continue

        if expression.startswith("..", pos):
            push("range", "..", pos, pos + 2)
            pos += 2
            continue

        if char.isdigit() or (char == "." and pos + 1 < length and expression[pos + 1].isdigit()):
            date_match = ISO_DATE_TOKEN_RE.match(expression, pos)
            if date_match:
                push("date", date_match.group(0), pos, date_match.end())
                pos = date_match.end()
                continue
            clock_match = CLOCK_TIME_TOKEN_RE.match(expression, pos)
            if clock_match and last_type not in ("identifier",):
                push("time", clock_match.group(0), pos, clock_match.end())
                pos = clock_match.end()
                continue
            start = pos
            grouped = GROUPED_NUMBER_RE.match(expression, pos) if depth == 0 else None
            if grouped:
                pos = grouped.end()
            while pos < length:
                if expression.startswith("..", pos):
                    break
                if expression[pos].isdigit() or expression[pos] == ".":
                    pos += 1
                    continue
                break
            if pos < length and expression[pos] in "eE":
                exponent = re.match(r"[eE][+-]?\d+", expression[pos:])
                if exponent:
                    pos += exponent.end()
            push("number", expression[start:pos].replace(",", ""), start, pos)
            continue

        if char in OPERATOR_CHARS or char in _OPERATOR_ALIASES:
            push("operator", _OPERATOR_ALIASES.get(char, char), pos, pos + 1)
            pos += 1
            continue

        if char in "()":
            depth += 1 if char == "(" else -1
            push("parentheses", char, pos, pos + 1)
            pos += 1
            continue

        if char in "[]":
            push("bracket", char, pos, pos + 1)
            pos += 1
            continue

        if char == ",":
            push("comma", ",", pos, pos + 1)
            pos += 1
            continue

        if char == ":":
            push("colon", ":", pos, pos + 1)
            pos += 1
            continue

        if char == "%":
            push("percentage", "%", pos, pos + 1)
            pos += 1
            continue

        if char in config.CURRENCY_SYMBOLS:
            push("currency", char, pos, pos + 1)
            pos += 1
            continue

        if last_type == "number" and re.match(r"[A-Za-z°µμΩ]", char):
            business = BUSINESS_DAYS_RE.match(expression, pos)
            if business:
                push("unit", business.group(0), pos, business.end())
                pos = business.end()
                continue
            unit_match = UNIT_TOKEN_RE.match(expression, pos)
            if unit_match and unit_match.group(0).lower() != "per":
                push("unit", unit_match.group(0), pos, unit_match.end())
                pos = unit_match.end()
                continue

        if _IDENT_START.match(char):
            start = pos
            words: list[str] = []
            word_start = pos
            while pos < length:
                if _IDENT_CHAR.match(expression[pos]):
                    pos += 1
                    continue
                if expression[pos].isspace():
                    lookahead = _skip_ws(expression, pos)
                    if lookahead < length and _IDENT_START.match(expression[lookahead]):
                        words.append(expression[word_start:pos])
                        pos = word_start = lookahead
                        continue
                break
            words.append(expression[word_start:pos])
            push("identifier", " ".join(words), start, pos)
            continue

        if char in "°µμΩ":
            push("identifier", char, pos, pos + 1)
            pos += 1
            continue

        raise ParseError(f"Unexpected character '{char}'", "UNEXPECTED_CHARACTER", position=pos)

    return tokens


# -- component builder ------------------------------------------------------------

def _literal(text: str, value: SemanticValue | None = None) -> ExpressionComponent:
    return ExpressionComponent(
        "literal", text, value if value is not None else parse_literal_or_error(text)
    )


def _collect_unit_tokens(tokens: list[Token], start: int) -> list[Token]:
    """Tokens after a rate separator that could spell a unit (m ^ 2 * s ...)."""
    collected: list[Token] = []
    pos = start
    last_was_exponent = False
    while pos < len(tokens):
        token = tokens[pos]
        if token.type == "operator":
            if token.value == "^":
                collected.append(token)
                last_was_exponent = True
                pos += 1
                continue
            if token.value == "-" and last_was_exponent and pos + 1 < len(tokens) and tokens[pos + 1].type == "number":
                collected.append(token)
                pos += 1
                continue
            if token.value in "*/":
                following = tokens[pos + 1] if pos + 1 < len(tokens) else None
                if following is not None and following.type in ("identifier", "unit"):
                    collected.append(token)
                    last_was_exponent = False
                    pos += 1
                    continue
            break
        if token.type == "number":
            if not last_was_exponent:
                break
            collected.append(token)
            last_was_exponent = False
            pos += 1
            continue
        if token.type in ("identifier", "unit"):
            collected.append(token)
            last_was_exponent = False
            pos += 1
            continue
        break
    return collected


def _longest_rate_literal(
    prefix: str, unit_tokens: list[Token], kind: str | None = None
) -> tuple[str, SemanticValue, int] | None:
    """Try ``prefix / unit`` with the longest prefix of ``unit_tokens`` that parses."""
    for count in range(len(unit_tokens), 0, -1):
        if unit_tokens[count - 1].type == "operator":
            continue
        unit_text = "".join(token.value for token in unit_tokens[:count])
        literal = f"{prefix}/{unit_text}"
        value = parse_literal(literal)
        if value is not None and (kind is None or value.kind == kind):
            return literal, value, count
    return None


def _matching(tokens: list[Token], start: int, opening: str, closing: str, kind: str) -> int:
    """Index of the token closing the group opened at ``start``."""
    depth = 0
    for index in range(start, len(tokens)):
        token = tokens[index]
        if token.type == kind and token.value == opening:
            depth += 1
        elif token.type == kind and token.value == closing:
            depth -= 1
            if depth == 0:
                return index
    name = "parenthesis" if opening == "(" else "bracket"
    raise ParseError(f"Unmatched opening {name}", "UNMATCHED_OPEN", position=tokens[start].start)


def _split_top_level(tokens: list[Token], separator: str) -> list[list[Token]]:
    groups: list[list[Token]] = [[]]
    depth = 0
    for token in tokens:
        if token.value in "([" and token.type in ("parentheses", "bracket"):
            depth += 1
        elif token.value in ")]" and token.type in ("parentheses", "bracket"):
            depth -= 1
        if token.type == separator and depth == 0:
            groups.append([])
            continue
        groups[-1].append(token)
    return groups


def _parse_arguments(tokens: list[Token]) -> tuple[FunctionArgument, ...]:
    if not tokens:
        return ()
    arguments = []
    for group in _split_top_level(tokens, "comma"):
        if not group:
            raise ParseError("Empty function argument", "EMPTY_ARGUMENT")
        name = None
        named = _split_top_level(group, "colon")
        if len(named) > 1:
            if len(named[0]) != 1 or named[0][0].type != "identifier":
                raise ParseError("Invalid named argument", "INVALID_NAMED_ARGUMENT")
            name = named[0][0].value
            group = [token for part in named[1:] for token in part]
        arguments.append(FunctionArgument(tuple(_build(group)), name))
    return tuple(arguments)


def _list_access(base: ExpressionComponent, inner: list[Token]) -> ExpressionComponent:
    if not inner:
        raise ParseError("Empty list access expression", "EMPTY_ACCESS")
    range_positions = [i for i, token in enumerate(inner) if token.type == "range"]
    if range_positions:
        split = range_positions[0]
        start_tokens, end_tokens = inner[:split], inner[split + 1:]
        if not start_tokens or not end_tokens:
            raise ParseError("Invalid slice expression", "INVALID_SLICE")
        access = ListAccess(base, "slice", start=tuple(_build(start_tokens)), end=tuple(_build(end_tokens)))
    else:
        access = ListAccess(base, "index", index=tuple(_build(inner)))
    return ExpressionComponent("listAccess", base.value, access=access)


def _build(tokens: list[Token]) -> list[ExpressionComponent]:
    if any(token.type == "comma" for token in tokens):
        groups = _split_top_level(tokens, "comma")
        if len(groups) > 1:
            if any(not group for group in groups):
                raise ParseError("Empty list item", "EMPTY_LIST_ITEM")
            items = tuple(
                ExpressionComponent("parentheses", "()", children=tuple(_build(group)))
                for group in groups
            )
            return [ExpressionComponent("list", "list", children=items)]

    components: list[ExpressionComponent] = []
    pos = 0
    while pos < len(tokens):
        token = tokens[pos]
        following = tokens[pos + 1] if pos + 1 < len(tokens) else None

        if token.type == "number":
            if following is not None and following.type == "percentage":
                components.append(_literal(token.value + "%"))
                pos += 2
                continue
            if following is not None and following.type == "unit":
                literal = f"{token.value} {following.value}"
                value = parse_literal(literal)
                if value is None:
                    # Not a unit after all ("2 x"): bare number, then the name
                    components.append(_literal(token.value))
                    components.append(ExpressionComponent("variable", following.value))
                    pos += 2
                    continue
                pos += 2
                # Compound durations: "1 year 2 months", "1 day 2 h"
                while (
                    pos + 1 < len(tokens)
                    and tokens[pos].type == "number"
                    and tokens[pos + 1].type == "unit"
                ):
                    extended = f"{literal} {tokens[pos].value} {tokens[pos + 1].value}"
                    extended_value = parse_literal(extended)
                    if extended_value is None or extended_value.kind != "duration":
                        break
                    literal, value = extended, extended_value
                    pos += 2
                components.append(_literal(literal, value))
                continue
            if following is not None and following.type == "identifier" and re.match(r"per\b", following.value, re.IGNORECASE):
                inline = following.value[3:].strip()
                unit_tokens = _collect_unit_tokens(tokens, pos + 2)
                unit_text = " ".join([inline] + [t.value for t in unit_tokens]).strip()
                value = parse_literal(f"{token.value} per {unit_text}") if unit_text else None
                if value is not None:
                    components.append(_literal(f"{token.value} per {unit_text}", value))
                    pos += 2 + len(unit_tokens)
                    continue
            if following is not None and following.type == "currency":
                components.append(_literal(token.value + following.value))
                pos += 2
                continue
            components.append(_literal(token.value))
            pos += 1
            continue

        if token.type == "currency":
            if following is None or following.type != "number":
                raise ParseError(f"Invalid currency literal: {token.value}", "INVALID_CURRENCY", position=token.start)
            amount = f"{token.value}{following.value}"
            separator = tokens[pos + 2] if pos + 2 < len(tokens) else None
            if separator is not None and separator.type == "operator" and separator.value == "/":
                rate = _longest_rate_literal(amount, _collect_unit_tokens(tokens, pos + 3), "currencyUnit")
                if rate is not None:
                    components.append(_literal(rate[0], rate[1]))
                    pos += 3 + rate[2]
                    continue
            if separator is not None and separator.type == "identifier" and re.match(r"per\b", separator.value, re.IGNORECASE):
                inline = separator.value[3:].strip()
                unit_tokens = _collect_unit_tokens(tokens, pos + 3)
                unit_text = " ".join([inline] + [t.value for t in unit_tokens]).strip()
                value = parse_literal(f"{amount} per {unit_text}") if unit_text else None
                if value is not None and value.kind == "currencyUnit":
                    components.append(_literal(f"{amount} per {unit_text}", value))
                    pos += 3 + len(unit_tokens)
                    continue
            components.append(_literal(amount))
            pos += 2
            continue

        if token.type == "date":
            components.append(_literal(token.value, _parse_date_token(token.value)))
            pos += 1
            continue

        if token.type == "time":
            time_value = TimeValue.parse(token.value)
            if time_value is None:
                raise ParseError(f"Invalid time of day: {token.value}", "INVALID_TIME", position=token.start)
            components.append(_literal(token.value, time_value))
            pos += 1
            continue

        if token.type == "unit":
            # A unit token not preceded by a number is an ordinary name
            components.append(ExpressionComponent("variable", token.value))
            pos += 1
            continue

        if token.type == "operator":
            components.append(ExpressionComponent("operator", token.value))
            pos += 1
            continue

        if token.type == "percentage":
            components.append(ExpressionComponent("operator", "%"))
            pos += 1
            continue

        if token.type == "identifier":
            if following is not None and following.type == "parentheses" and following.value == "(":
                close = _matching(tokens, pos + 1, "(", ")", "parentheses")
                args = _parse_arguments(tokens[pos + 2:close])
                components.append(ExpressionComponent("function", token.value, args=args))
                pos = close + 1
                continue
            components.append(ExpressionComponent("variable", token.value))
            pos += 1
            continue

        if token.type == "parentheses":
            if token.value == ")":
                raise ParseError("Unmatched closing parenthesis", "UNMATCHED_CLOSE", position=token.start)
            close = _matching(tokens, pos, "(", ")", "parentheses")
            inner = tokens[pos + 1:close]
            if not inner:
                raise ParseError("Empty parentheses", "EMPTY_PARENTHESES", position=token.start)
            components.append(ExpressionComponent("parentheses", "()", children=tuple(_build(inner))))
            pos = close + 1
            continue

        if token.type == "bracket":
            if token.value == "]":
                raise ParseError("Unmatched closing bracket", "UNMATCHED_CLOSE", position=token.start)
            if not components:
                raise ParseError("List access missing base expression", "MISSING_BASE", position=token.start)
            close = _matching(tokens, pos, "[", "]", "bracket")
            base = components.pop()
            components.append(_list_access(base, tokens[pos + 1:close]))
            pos = close + 1
            continue

        if token.type == "range":
            raise ParseError("Invalid range expression", "INVALID_RANGE", position=token.start)

        raise ParseError(f"Unexpected token: {token.value}", "UNEXPECTED_TOKEN", position=token.start)

    return components


def _parse_date_token(text: str) -> SemanticValue:
    match = ISO_DATE_TOKEN_RE.fullmatch(text)
    hour = int(match.group(4)) if match and match.group(4) else None
    minute = int(match.group(5)) if match and match.group(5) else None
    zone = parse_zone(match.group(6)) if match and match.group(6) else parse_zone("local")
    value = (
        DateValue.from_parts(int(match.group(1)), int(match.group(2)), int(match.group(3)), hour, minute, zone)
        if match
        else None
    )
    if value is None:
        return parse_literal_or_error(text)
    return value


def parse(expression: str) -> list[ExpressionComponent]:
    """Parse ``expression`` into a component list.

    Args:
        expression: Expression text (no assignment, no trailing "=>")

    Returns:
        Top-level components in source order

    Raises:
        ParseError: On unmatched or empty brackets, invalid currency literals,
            malformed ranges or unexpected characters
    """
    balanced, position = is_balanced(expression)
    if not balanced:
        char = expression[position] if position is not None else ""
        if char in ")]}":
            raise ParseError(
                f"Unmatched closing {'parenthesis' if char == ')' else 'bracket'}",
                "UNMATCHED_CLOSE",
                position=position,
            )
        raise ParseError(
            f"Unmatched opening {'parenthesis' if char == '(' else 'bracket'}",
            "UNMATCHED_OPEN",
            position=position,
        )
    return _build(tokenize(rewrite_ranges(expression)))


def components_to_text(components) -> str:
    """Render components back to readable expression text."""
    pieces: list[str] = []
    for component in components:
        if component.type == "operator":
            pieces.append("%" if component.value == "%" else f" {component.value} ")
        elif component.type == "parentheses":
            pieces.append(f"({components_to_text(component.children)})")
        elif component.type == "list":
            pieces.append(", ".join(components_to_text(item.children) for item in component.children))
        elif component.type == "function":
            args = ", ".join(
                (f"{arg.name}: " if arg.name else "") + components_to_text(arg.components)
                for arg in component.args
            )
            pieces.append(f"{component.value}({args})")
        elif component.type == "listAccess":
            access = component.access
            if access.kind == "slice":
                inner = f"{components_to_text(access.start)}..{components_to_text(access.end)}"
            else:
                inner = components_to_text(access.index)
            pieces.append(f"{components_to_text((access.base,))}[{inner}]")
        else:
            pieces.append(component.value)
    return "".join(pieces).strip()


@dataclass(frozen=True)
class ConversionSuffix:
    """Trailing ``to|in <target>`` split off an expression."""

    base: str
    keyword: str
    target: str


_CURRENCY_TARGET_RE = re.compile(
    rf"^(?:[{re.escape(config.CURRENCY_SYMBOLS)}]|{'|'.join(config.CURRENCY_CODES)})"
    r"(?:\s*(?:/|per\s)\s*(?P<unit>.+))?$",
    re.IGNORECASE,
)


def is_conversion_target(target: str) -> bool:
    """True if ``target`` names something a value can be converted into."""
    cleaned = target.strip()
    if not cleaned:
        return False
    if cleaned == "%" or config.ZONE_REGEX.match(cleaned):
        return True
    currency = _CURRENCY_TARGET_RE.match(cleaned)
    if currency:
        return currency.group("unit") is None or is_unit_string(currency.group("unit"))
    cleaned = re.sub(r"^per\s+", "1/", cleaned, flags=re.IGNORECASE)
    return is_unit_string(cleaned)


def split_conversion_suffix(expression: str) -> ConversionSuffix | None:
    """Split ``50 m + 20 ft to km`` into base and target.

    The last top-level ``to``/``in`` whose right-hand side is a unit, zone,
    currency or ``%`` wins; anything else is left alone.
    """
    best: ConversionSuffix | None = None
    for keyword in ("to", "in"):
        index = find_top_level_keyword(expression, keyword, last=True)
        if index <= 0:
            continue
        base = expression[:index].strip()
        target = expression[index + len(keyword):].strip()
        if not base or not is_conversion_target(target):
            continue
        if best is None or len(base) > len(best.base):
            best = ConversionSuffix(base, keyword, target)
    return best
