from __future__ import annotations

import re
from pathlib import Path

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9\-_]")


def expand_home(path: str | Path, home: Path) -> Path:
    """Expand a leading ``~`` against ``home`` instead of the process home.

    Both ``~/`` and ``~\\`` prefixes are accepted so paths copied from
    Windows configs keep working.
    """
    text = str(path)
    if text == "~":
        return home
    if text.startswith(("~/", "~\\")):
        return home / text[2:].replace("\\", "/")
    return Path(text)


def sanitize_name(name: str) -> str:
    """Strip anything from a context or release name that could escape a path.

    Returns an empty string when nothing usable remains.
    """
    while ".." in name:
        name = name.replace("..", "")
    for ch in ("/", "\\", "\x00"):
        name = name.replace(ch, "")
    name = _UNSAFE_NAME_CHARS.sub("", name)
    return name.strip("-_")
