"""String builders for LilyPond output."""

from __future__ import annotations

from abc2ly.ast_nodes import Meter

INDENT = "  "

VOLTA_END = "(volta #f)"


def _indent(text: str, level: int = 1) -> str:
    prefix = INDENT * level
    return "\n".join(prefix + line if line else line for line in text.split("\n"))


def ly_string(text: str) -> str:
    """Quote ``text`` as a LilyPond string."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def ly_version(version: str) -> str:
    return f"\\version {ly_string(version)}"


def ly_header(entries: list[tuple[str, str]]) -> str:
    lines = ["\\header {"]
    lines.extend(f"{INDENT}{key} = {ly_string(value)}" for key, value in entries)
    lines.append("}")
    return "\n".join(lines)


def ly_staff(lines: list[str]) -> str:
    body = "\n".join(_indent(line) for line in lines)
    if body:
        return f"\\new Staff {{\n{body}\n}}"
    return "\\new Staff {\n}"


def ly_score(header: str, staff: str) -> str:
    return f"\\score {{\n{_indent(header)}\n{_indent(staff)}\n}}\n"


def ly_time(meter: Meter) -> str:
    return f"\\time {meter}"


def ly_bar(glyph: str) -> str:
    return f"\\bar {ly_string(glyph)}"


def ly_mark(text: str) -> str:
    return f"\\mark {ly_string(text)}"


def ly_volta(text: str) -> str:
    return f"(volta {ly_string(text)})"


def ly_repeat_commands(commands: list[str]) -> str:
    return f"\\set Score.repeatCommands = #'({' '.join(commands)})"
