"""``:[range]s[ubstitute]/{pattern}/{string}/[flags] [count]``."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, ClassVar, List, Optional, Tuple, Union

from ex_engine.buffer import split_lines
from ex_engine.context import EditorContext, LastSubstitute, SessionState
from ex_engine.errors import (
    ErrorCode,
    ExError,
    InvalidPatternError,
    ParseError,
    PatternReuseError,
    UnsupportedSyntaxError,
)
from ex_engine.runtime import telemetry

from .base import CommandBase

SUPPORTED_FLAGS = "&giIne"
DELEGATED_FLAGS = "cpl#r"
_FLAGS_AND_COUNT = re.compile(r"(?P<flags>[&a-zA-Z#]*)\s*(?P<count>\d*)\s*")

# Report changes on more lines than this, like Vim's 'report' option.
REPORT_THRESHOLD = 2


@dataclass(slots=True)
class SubstituteArguments:
    """Parsed argument tail. ``pattern is None`` repeats the last substitute."""

    pattern: Optional[str] = None
    replacement: Optional[str] = None
    flags: str = ""
    count: Optional[int] = None
    delimiter: Optional[str] = None


def split_on_delimiter(text: str, start: int, delimiter: str) -> Tuple[str, int, bool]:
    """Scan ``text`` from ``start`` up to an unescaped ``delimiter``.

    Returns the segment, the index after the delimiter, and whether a
    delimiter was found. ``\\<delimiter>`` is kept as a bare delimiter; every
    other escape is passed through untouched for the regex engine.
    """

    buf: List[str] = []
    index = start
    while index < len(text):
        char = text[index]
        if char == "\\" and index + 1 < len(text):
            following = text[index + 1]
            if following == delimiter:
                buf.append(delimiter)
            else:
                buf.append(char)
                buf.append(following)
            index += 2
            continue
        if char == delimiter:
            return "".join(buf), index + 1, True
        buf.append(char)
        index += 1
    return "".join(buf), index, False


def _parse_flags_and_count(text: str) -> Tuple[str, Optional[int]]:
    match = _FLAGS_AND_COUNT.fullmatch(text)
    if match is None:
        raise ParseError(text, code=ErrorCode.TRAILING_CHARACTERS)
    flags = match.group("flags")
    for flag in flags:
        if flag in DELEGATED_FLAGS:
            raise UnsupportedSyntaxError(f"substitute flag '{flag}'")
        if flag not in SUPPORTED_FLAGS:
            raise ParseError(text, code=ErrorCode.TRAILING_CHARACTERS)
    if "&" in flags[1:]:
        raise ParseError(text, code=ErrorCode.TRAILING_CHARACTERS)
    count = match.group("count")
    if count and int(count) == 0:
        raise ParseError(count, code=ErrorCode.INVALID_RANGE)
    return flags, int(count) if count else None


def parse_substitute_arguments(text: str) -> SubstituteArguments:
    stripped = text.lstrip()
    if not stripped:
        return SubstituteArguments()

    delimiter = stripped[0]
    if delimiter.isalnum() or delimiter in '"|\\':
        flags, count = _parse_flags_and_count(stripped)
        return SubstituteArguments(flags=flags, count=count)

    pattern, index, closed = split_on_delimiter(stripped, 1, delimiter)
    replacement = ""
    if closed:
        replacement, index, closed = split_on_delimiter(stripped, index, delimiter)
    flags, count = "", None
    if closed:
        flags, count = _parse_flags_and_count(stripped[index:])
    return SubstituteArguments(
        pattern=pattern,
        replacement=replacement,
        flags=flags,
        count=count,
        delimiter=delimiter,
    )


ReplacementPart = Union[str, int]


def compile_replacement(template: str) -> Callable[["re.Match[str]"], str]:
    """Build a replacer for Vim-style templates.

    ``&`` and ``\\0`` insert the whole match, ``\\1``..``\\9`` a capture
    group, ``\\r`` and ``\\n`` a line break, ``\\t`` a tab; ``\\&`` and
    ``\\\\`` are literals.
    """

    parts: List[ReplacementPart] = []
    literal: List[str] = []

    def flush() -> None:
        if literal:
            parts.append("".join(literal))
            literal.clear()

    index = 0
    while index < len(template):
        char = template[index]
        if char == "\\" and index + 1 < len(template):
            following = template[index + 1]
            index += 2
            if following.isdigit():
                flush()
                parts.append(int(following))
            elif following in "rn":
                literal.append("\n")
            elif following == "t":
                literal.append("\t")
            else:
                literal.append(following)
            continue
        if char == "&":
            flush()
            parts.append(0)
        else:
            literal.append(char)
        index += 1
    flush()

    def replace(match: "re.Match[str]") -> str:
        out: List[str] = []
        for part in parts:
            if isinstance(part, str):
                out.append(part)
            elif part <= match.re.groups:
                out.append(match.group(part) or "")
        return "".join(out)

    return replace


class SubstituteCommand(CommandBase):
    name: ClassVar[str] = "substitute"
    backend_capable: ClassVar[bool] = True

    def __init__(
        self,
        *,
        bang: bool = False,
        arguments: str = "",
        parsed: Optional[SubstituteArguments] = None,
    ) -> None:
        super().__init__(bang=bang, arguments=arguments)
        self.substitute_arguments = parsed or parse_substitute_arguments(arguments)

    @classmethod
    def create(cls, *, bang: bool, argument: str) -> "SubstituteCommand":
        # ``:s!a!b!`` uses ``!`` as the delimiter rather than as a bang.
        text = f"!{argument}" if bang else argument
        return cls(arguments=text, parsed=parse_substitute_arguments(text))

    async def execute(self, context: EditorContext) -> None:
        row = context.buffer.state.cursor[0]
        self._apply(context, row, row)

    async def execute_with_range(
        self, context: EditorContext, start: int, end: int
    ) -> None:
        self._apply(context, start, end)

    def _resolve(self, session: SessionState) -> LastSubstitute:
        args = self.substitute_arguments
        previous = session.last_substitute
        flags = args.flags
        if flags.startswith("&"):
            flags = (previous.flags if previous else "") + flags[1:]

        if args.pattern is None:
            if previous is None:
                raise PatternReuseError()
            return LastSubstitute(previous.pattern, previous.replacement, flags)

        pattern = args.pattern
        if not pattern:
            if not session.last_search_pattern:
                raise PatternReuseError()
            pattern = session.last_search_pattern
        return LastSubstitute(pattern, args.replacement or "", flags)

    def _apply(self, context: EditorContext, start: int, end: int) -> None:
        buffer = context.buffer
        session = context.session
        resolved = self._resolve(session)
        flags = resolved.flags

        count = self.substitute_arguments.count
        if count is not None:
            start = end
            end = min(end + count - 1, buffer.line_count - 1)

        try:
            regex = re.compile(resolved.pattern, re.IGNORECASE if "i" in flags else 0)
        except re.error as exc:
            raise InvalidPatternError(f"{resolved.pattern} ({exc})") from exc

        session.last_substitute = resolved
        session.last_search_pattern = resolved.pattern

        replace_all = session.substitute_global_flag != ("g" in flags)
        replace = compile_replacement(resolved.replacement)
        lines = buffer.lines

        new_lines: List[str] = []
        matches = 0
        changed_lines = 0
        for row in range(start, end + 1):
            line = lines[row]
            result, hits = regex.subn(replace, line, count=0 if replace_all else 1)
            if hits:
                matches += hits
                changed_lines += 1
                new_lines.extend(split_lines(result))
            else:
                new_lines.append(line)

        if not matches:
            if "e" in flags:
                return
            raise ExError(resolved.pattern, code=ErrorCode.PATTERN_NOT_FOUND)

        if "n" in flags:
            context.set_status(_plural(matches, "match", "matches", changed_lines))
            return

        telemetry.record_event(
            "substitute.applied",
            level="debug",
            data={"start": start, "end": end, "global": replace_all, "matches": matches},
        )
        with buffer.batch("substitute"):
            buffer.replace_lines(start, end + 1, new_lines, label="substitute")

        if changed_lines > REPORT_THRESHOLD:
            context.set_status(
                _plural(matches, "substitution", "substitutions", changed_lines)
            )


def _plural(count: int, singular: str, plural: str, lines: int) -> str:
    noun = singular if count == 1 else plural
    line_noun = "line" if lines == 1 else "lines"
    return f"{count} {noun} on {lines} {line_noun}"


__all__ = [
    "SubstituteArguments",
    "SubstituteCommand",
    "compile_replacement",
    "parse_substitute_arguments",
    "split_on_delimiter",
]
