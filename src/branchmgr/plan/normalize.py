"""Target list normalization (pure, no external I/O)."""

from __future__ import annotations

from branchmgr.errors import InvalidInputError
from branchmgr.models import OperationTarget

SEPARATOR: str = ":"
ALT_SEPARATOR: str = "|"


def parse_target_line(line: str) -> OperationTarget:
    """
    Parse one `repository:branch` (or `repository|branch`) line.

    The split point is the LAST separator, so repository identifiers that
    contain separators are preserved.

    Raises:
        ValueError: if the line has no separator or an empty side.
    """
    text = line.strip().replace(ALT_SEPARATOR, SEPARATOR)
    repository, sep, branch = text.rpartition(SEPARATOR)
    if not sep:
        raise ValueError(f"Missing separator in target: {line.strip()!r}")
    return OperationTarget(repository=repository.strip(), branch=branch.strip())


def normalize_targets(text: str) -> list[OperationTarget]:
    """
    Normalize raw multi-line input into an ordered, de-duplicated target list.

    Rules:
        - Trim whitespace per line; skip blank lines.
        - `|` is normalized to `:` before splitting on the last `:`.
        - Duplicates collapse to one target; first occurrence keeps its place.

    Raises:
        InvalidInputError: if the input is empty after normalization, or if any
            non-blank line is malformed (all malformed lines are reported).
    """
    if text is None:
        raise InvalidInputError("Target list is empty")

    targets: list[OperationTarget] = []
    seen: set[OperationTarget] = set()
    malformed: list[str] = []

    for lineno, raw in enumerate(str(text).splitlines(), start=1):
        if not raw.strip():
            continue
        try:
            target = parse_target_line(raw)
        except ValueError:
            malformed.append(f"line {lineno}: {raw.strip()}")
            continue
        if target in seen:
            continue
        seen.add(target)
        targets.append(target)

    if malformed:
        raise InvalidInputError(
            "Malformed target lines (expected repository:branch)",
            details={"malformed": malformed},
        )
    if not targets:
        raise InvalidInputError("Target list is empty")
    return targets
