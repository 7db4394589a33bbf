"""Mermaid flowchart syntax checks and text sanitizers."""

import re
from dataclasses import dataclass, field

from pagetree.constants import EMPTY_ID, RESERVED_IDS


@dataclass
class ValidationResult:
    """Result of Mermaid diagram validation.

    Attributes:
        valid: True if the diagram syntax is valid.
        errors: List of human-readable error messages.
        line_numbers: Lines where errors were found.
    """

    valid: bool
    errors: list[str] = field(default_factory=list)
    line_numbers: list[int] = field(default_factory=list)


_INIT_DIRECTIVE = re.compile(r"^%%\{.*\}%%$")


def validate_mermaid(content: str) -> ValidationResult:
    """Validate flowchart syntax produced by the emitter.

    Checks the diagram type declaration (after an optional init directive),
    balanced brackets and subgraph/end pairing.
    """
    errors: list[str] = []
    line_numbers: list[int] = []

    lines = [line for line in content.strip().split("\n")]
    if not lines or not lines[0].strip():
        return ValidationResult(valid=False, errors=["Empty diagram"], line_numbers=[0])

    header_index = 0
    if _INIT_DIRECTIVE.match(lines[0].strip()):
        header_index = 1

    header = lines[header_index].strip().lower() if header_index < len(lines) else ""
    if not (header.startswith("flowchart") or header.startswith("graph")):
        errors.append("Missing diagram type. Must start with flowchart or graph")
        line_numbers.append(header_index + 1)

    for open_char, close_char in [("[", "]"), ("(", ")"), ("{", "}")]:
        open_count = content.count(open_char)
        close_count = content.count(close_char)
        if open_count != close_count:
            errors.append(
                f"Unbalanced brackets: {open_count} '{open_char}' vs {close_count} '{close_char}'"
            )

    subgraph_count = len(re.findall(r"^\s*subgraph\b", content, re.MULTILINE | re.IGNORECASE))
    end_count = len(re.findall(r"^\s*end\b", content, re.MULTILINE | re.IGNORECASE))
    if subgraph_count != end_count:
        errors.append(f"Unmatched subgraph/end: {subgraph_count} subgraphs vs {end_count} ends")

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        line_numbers=line_numbers,
    )


def sanitize_label(text: str, max_length: int = 40) -> str:
    """Make text safe for a quoted Mermaid node label.

    Args:
        text: Raw text to sanitize.
        max_length: Maximum length before truncation.
    """
    result = text.replace("\n", " ").replace("\r", "")

    # Brackets and quotes would end the label early
    result = result.replace("[", "(").replace("]", ")")
    result = result.replace("{", "(").replace("}", ")")
    result = result.replace('"', "'")
    result = result.replace("<", "").replace(">", "")
    result = result.replace("|", "/")

    result = " ".join(result.split())

    if len(result) > max_length:
        result = result[: max_length - 3] + "..."

    return _balance_parentheses(result)


def _balance_parentheses(text: str) -> str:
    """Drop parentheses without a partner, e.g. one left open by truncation."""
    unmatched: set[int] = set()
    open_positions: list[int] = []
    for i, ch in enumerate(text):
        if ch == "(":
            open_positions.append(i)
        elif ch == ")":
            if open_positions:
                open_positions.pop()
            else:
                unmatched.add(i)
    unmatched.update(open_positions)
    if not unmatched:
        return text
    return "".join(ch for i, ch in enumerate(text) if i not in unmatched)


def sanitize_id(text: str) -> str:
    """Make text safe for a Mermaid node identifier.

    Every non-alphanumeric character becomes "_", leading underscores are
    stripped and an empty result falls back to "n". Identifiers that would
    read as a Mermaid keyword get a trailing "_".

        >>> sanitize_id("My Page!")
        'My_Page_'
        >>> sanitize_id("___")
        'n'
        >>> sanitize_id("end")
        'end_'
    """
    result = "".join(ch if ch.isalnum() else "_" for ch in text).lstrip("_") or EMPTY_ID
    if result.lower() in RESERVED_IDS:
        result += "_"
    return result
