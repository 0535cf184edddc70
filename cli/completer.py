"""Custom completer for FileShelf CLI with local file autocompletion."""

from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS


class ShelfCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Local file path completion for the 'upload' command
    """

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        """
        Generate completions based on cursor position and context.

        For the first token, completes command names.
        For 'upload' command arguments, completes paths relative to the
        current working directory.
        """
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        if command != "upload":
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        already_typed = set(tokens[1:])
        if not is_typing_new_token:
            already_typed.discard(current_word)

        yield from self._complete_local_paths(current_word, already_typed)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_local_paths(
        self, partial: str, exclude: set
    ) -> Iterable[Completion]:
        """
        Complete file and directory paths below the current directory.

        Directories are offered with a trailing '/'; hidden entries are only
        offered once the user has typed a leading '.'.
        """
        if "/" in partial:
            directory_part, name_part = partial.rsplit("/", 1)
            directory_part += "/"
        else:
            directory_part, name_part = "", partial

        base = Path.cwd() / directory_part if directory_part else Path.cwd()
        if not base.is_dir():
            return

        candidates = []
        for item in base.iterdir():
            if item.name.startswith(".") and not name_part.startswith("."):
                continue
            if not item.name.startswith(name_part):
                continue
            candidate = f"{directory_part}{item.name}"
            if item.is_dir():
                candidate += "/"
            if candidate in exclude:
                continue
            candidates.append(candidate)

        for candidate in sorted(candidates):
            yield Completion(candidate, start_position=-len(partial))
