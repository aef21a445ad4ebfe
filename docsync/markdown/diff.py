"""Line diffs between document revisions and their console rendering."""

from __future__ import annotations

from typing import List, Sequence

from ..models import DiffLine, FileDiff

_GREEN = "\033[32m"
_RED = "\033[31m"
_DIM = "\033[2m"
_CYAN = "\033[36m"
_RESET = "\033[0m"


def compute_diff(old_content: str, new_content: str, file_path: str = "") -> FileDiff:
    """Align two texts line by line using a longest-common-subsequence table.

    Context and removed lines carry their 1-based line number in the old
    text; added lines carry none. Removals precede additions within a change.
    """
    old_lines = old_content.split("\n")
    new_lines = new_content.split("\n")

    prefix = 0
    while (
        prefix < len(old_lines)
        and prefix < len(new_lines)
        and old_lines[prefix] == new_lines[prefix]
    ):
        prefix += 1
    suffix = 0
    while (
        suffix < len(old_lines) - prefix
        and suffix < len(new_lines) - prefix
        and old_lines[len(old_lines) - 1 - suffix] == new_lines[len(new_lines) - 1 - suffix]
    ):
        suffix += 1

    lines: List[DiffLine] = [
        DiffLine(type="context", content=old_lines[index], line_number=index + 1)
        for index in range(prefix)
    ]
    lines.extend(
        _lcs_lines(
            old_lines[prefix : len(old_lines) - suffix],
            new_lines[prefix : len(new_lines) - suffix],
            offset=prefix,
        )
    )
    tail_start = len(old_lines) - suffix
    lines.extend(
        DiffLine(type="context", content=old_lines[index], line_number=index + 1)
        for index in range(tail_start, len(old_lines))
    )
    return FileDiff(
        file_path=file_path,
        old_content=old_content,
        new_content=new_content,
        lines=tuple(lines),
    )


def _lcs_lines(old: Sequence[str], new: Sequence[str], *, offset: int) -> List[DiffLine]:
    rows, cols = len(old), len(new)
    # table[i][j] is the LCS length of old[i:] and new[j:]
    table = [[0] * (cols + 1) for _ in range(rows + 1)]
    for i in range(rows - 1, -1, -1):
        for j in range(cols - 1, -1, -1):
            if old[i] == new[j]:
                table[i][j] = table[i + 1][j + 1] + 1
            else:
                table[i][j] = max(table[i + 1][j], table[i][j + 1])

    result: List[DiffLine] = []
    i = j = 0
    while i < rows and j < cols:
        if old[i] == new[j]:
            result.append(DiffLine(type="context", content=old[i], line_number=offset + i + 1))
            i += 1
            j += 1
        elif table[i + 1][j] >= table[i][j + 1]:
            result.append(DiffLine(type="remove", content=old[i], line_number=offset + i + 1))
            i += 1
        else:
            result.append(DiffLine(type="add", content=new[j]))
            j += 1
    while i < rows:
        result.append(DiffLine(type="remove", content=old[i], line_number=offset + i + 1))
        i += 1
    while j < cols:
        result.append(DiffLine(type="add", content=new[j]))
        j += 1
    return result


def apply_diff(diff: FileDiff) -> str:
    """Replay a diff's additions and removals to rebuild the new text."""
    return "\n".join(line.content for line in diff.lines if line.type != "remove")


def group_hunks(lines: Sequence[DiffLine], context_lines: int = 3) -> List[List[DiffLine]]:
    """Group change lines with up to ``context_lines`` of surrounding context."""
    changed = [index for index, line in enumerate(lines) if line.type != "context"]
    if not changed:
        return []

    hunks: List[List[DiffLine]] = []
    start = max(0, changed[0] - context_lines)
    end = min(len(lines), changed[0] + context_lines + 1)
    for index in changed[1:]:
        window_start = max(0, index - context_lines)
        if window_start <= end:
            end = min(len(lines), index + context_lines + 1)
            continue
        hunks.append(list(lines[start:end]))
        start = window_start
        end = min(len(lines), index + context_lines + 1)
    hunks.append(list(lines[start:end]))
    return hunks


def format_diff_for_console(diff: FileDiff, context_lines: int = 3, color: bool = True) -> str:
    """Render ``diff`` with +/- prefixes, old line numbers and ANSI colours."""
    if not diff.has_changes:
        return f"No changes in {diff.file_path}"

    def paint(code: str, text: str) -> str:
        return f"{code}{text}{_RESET}" if color else text

    output: List[str] = [paint(_CYAN, f"--- {diff.file_path}"), paint(_CYAN, f"+++ {diff.file_path}")]
    for position, hunk in enumerate(group_hunks(diff.lines, context_lines)):
        if position:
            output.append(paint(_DIM, "..."))
        for line in hunk:
            number = f"{line.line_number:4d}" if line.line_number is not None else "    "
            if line.type == "add":
                output.append(paint(_GREEN, f"+{number} {line.content}"))
            elif line.type == "remove":
                output.append(paint(_RED, f"-{number} {line.content}"))
            else:
                output.append(paint(_DIM, f" {number} {line.content}"))
    return "\n".join(output)


__all__ = ["apply_diff", "compute_diff", "format_diff_for_console", "group_hunks"]
