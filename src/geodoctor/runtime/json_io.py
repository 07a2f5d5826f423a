from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from geodoctor.exceptions import InputShapeError, ReportIOError
from geodoctor.runtime.stable_encode import stabilize


def read_text_path(path: Path, *, encoding: str = "utf-8") -> str:
    if not path.exists():
        raise ReportIOError("file not found", path=path)
    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeError) as exc:
        raise ReportIOError(f"unreadable: {exc}", path=path) from exc


def load_json_path(path: Path, *, encoding: str = "utf-8") -> object:
    text = read_text_path(path, encoding=encoding)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise InputShapeError(f"invalid JSON: {exc}", path=path) from exc


def strip_json_comments(text: str) -> str:
    """Remove ``//`` line comments and ``/* */`` block comments.

    Comment markers inside string literals are kept, so URLs in values survive.
    Newlines inside block comments are preserved to keep decode error line
    numbers meaningful.
    """
    out: list[str] = []
    index = 0
    length = len(text)
    in_string = False
    while index < length:
        char = text[index]
        if in_string:
            out.append(char)
            if char == "\\" and index + 1 < length:
                out.append(text[index + 1])
                index += 2
                continue
            if char == '"':
                in_string = False
            index += 1
            continue
        if char == '"':
            in_string = True
            out.append(char)
            index += 1
            continue
        if text.startswith("//", index):
            end = text.find("\n", index)
            index = length if end == -1 else end
            continue
        if text.startswith("/*", index):
            end = text.find("*/", index + 2)
            if end == -1:
                raise InputShapeError("unterminated block comment")
            out.append("\n" * text.count("\n", index, end))
            index = end + 2
            continue
        out.append(char)
        index += 1
    return "".join(out)


def dump_json_pretty(payload: object) -> str:
    text = json.dumps(stabilize(payload), indent=2, sort_keys=False, ensure_ascii=False)
    return text.replace("\r\n", "\n") + "\n"


def write_text_atomic(path: Path, text: str, *, encoding: str = "utf-8") -> Path:
    """Write ``text`` to ``path`` through a sibling temp file and ``os.replace``.

    Readers either see the previous file or the complete new one. The temp file
    is removed on every failure path.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ReportIOError(f"cannot create parent directory: {exc}", path=path) from exc
    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding=encoding,
            newline="\n",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_path = Path(handle.name)
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, path)
        tmp_path = None
    except (OSError, UnicodeError) as exc:
        raise ReportIOError(f"write failed: {exc}", path=path) from exc
    finally:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
    return path


def write_json_atomic(path: Path, payload: object) -> Path:
    return write_text_atomic(path, dump_json_pretty(payload))
