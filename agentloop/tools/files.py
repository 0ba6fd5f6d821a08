"""
File-system tools. Their input is a JSON object; paths are relative
to the working directory of the process.

These tools modify files on purpose: file_write and file_edit change
the file system visible to the whole process.
"""

import json
from pathlib import Path

from .base import Tool, parse_json_input


class FileReadTool(Tool):
    name = "file_read"
    description = (
        "Read the contents of a file. Input must be JSON with 'path' "
        'field. Example: {"path": "file.txt"}'
    )
    example = '{"path": "file.txt"}'

    def call(self, input: str) -> str:
        params = parse_json_input(input, self.example, ("path",))
        if isinstance(params, str):
            return params
        path = Path(str(params["path"]))
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return f"Error: File not found: {path}"
        except (OSError, UnicodeDecodeError) as e:
            return f"Error reading file: {e}"


class FileWriteTool(Tool):
    name = "file_write"
    description = (
        "Write content to a file, creating it if it doesn't exist. "
        "This overwrites the entire file content. Input should be a "
        "JSON string with 'path' and 'content' fields. "
        'Example: {"path": "file.txt", "content": "Hello"}'
    )
    example = '{"path": "file.txt", "content": "Hello"}'

    def call(self, input: str) -> str:
        params = parse_json_input(input, self.example, ("path",))
        if isinstance(params, str):
            return params
        path = Path(str(params["path"]))
        content = str(params.get("content") or "")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            return f"Error writing file: {e}"
        return f"Successfully wrote to {path}"


class FileEditTool(Tool):
    name = "file_edit"
    description = (
        "Edit a file by replacing old_str with new_str. Input must be "
        "JSON with 'path', 'old_str', and 'new_str' fields. If the file "
        "does not exist and old_str is empty, it is created with "
        'new_str as content. Example: {"path": "file.txt", '
        '"old_str": "old", "new_str": "new"}'
    )
    example = '{"path": "file.txt", "old_str": "old", "new_str": "new"}'

    def call(self, input: str) -> str:
        params = parse_json_input(input, self.example, ("path",))
        if isinstance(params, str):
            return params
        path = Path(str(params["path"]))
        old_str = str(params.get("old_str") or "")
        new_str = str(params.get("new_str") or "")
        if old_str == new_str:
            return "Error: old_str and new_str must be different"

        try:
            if not path.exists():
                if old_str:
                    return (
                        "Error: old_str must be empty when creating "
                        "new file"
                    )
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(new_str, encoding="utf-8")
                return f"Successfully created file {path}"

            if not old_str:
                return "Error: Cannot use empty old_str on existing file"
            content = path.read_text(encoding="utf-8")
            if old_str not in content:
                return "Error: old_str not found in file"
            path.write_text(
                content.replace(old_str, new_str), encoding="utf-8"
            )
        except (OSError, UnicodeDecodeError) as e:
            return f"Error editing file: {e}"
        return "OK"


class DirectoryListTool(Tool):
    name = "directory_list"
    description = (
        "List files and directories recursively. Input must be JSON "
        "with optional 'path' field. Example: "
        '{"path": "directory"} or {} for current directory.'
    )
    example = '{"path": "directory"} or {}'

    def call(self, input: str) -> str:
        # an empty input lists the current directory
        params = parse_json_input(input or "{}", self.example)
        if isinstance(params, str):
            return params
        root = Path(str(params.get("path") or "."))
        if not root.is_dir():
            return f"Error listing directory: not a directory: {root}"
        try:
            entries = sorted(
                f"{entry}/" if entry.is_dir() else str(entry)
                for entry in root.rglob("*")
            )
        except OSError as e:
            return f"Error listing directory: {e}"
        return json.dumps(entries)
