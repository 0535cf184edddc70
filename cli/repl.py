"""REPL with prompt_toolkit for user interaction."""

import os
import sys
from typing import Callable, Dict

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from cli.commands import (
    get_client,
    handle_download,
    handle_list,
    handle_refresh,
    handle_server,
    handle_upload,
)
from cli.completer import ShelfCompleter
from cli.constants import (
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.models import (
    CommandRequest,
    DownloadCommand,
    ListCommand,
    RefreshCommand,
    ServerCommand,
    UploadCommand,
)
from cli.parser import ParseError, parse_command

HANDLERS: Dict[type, Callable[..., str]] = {
    UploadCommand: handle_upload,
    ListCommand: handle_list,
    DownloadCommand: handle_download,
    RefreshCommand: handle_refresh,
    ServerCommand: handle_server,
}


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome() -> None:
    """Display the logo, the server in use and the help hint."""
    print(LOGO)
    print(WELCOME_TITLE)
    print(f"Server: {get_client().config.get_base_url()}")
    print(WELCOME_HELP)


def dispatch_command(cmd_obj: CommandRequest) -> str:
    """Dispatch parsed command to appropriate handler."""
    handler = HANDLERS.get(type(cmd_obj))
    if handler is None:
        return f"Unknown command type: {type(cmd_obj)}"
    return handler(cmd_obj)


def run_once(input_line: str) -> int:
    """
    Execute a single command line without entering the REPL.

    Returns:
        Process exit status (0 on success, 1 on any error)
    """
    try:
        result = dispatch_command(parse_command(input_line))
    except ParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(result)
    return 1 if any(line.startswith("Error") for line in result.splitlines()) else 0


def repl_loop() -> None:
    """Start interactive REPL with prompt_toolkit."""
    session: PromptSession = PromptSession(
        completer=ShelfCompleter(), history=InMemoryHistory(), style=STYLE
    )

    clear_screen()
    show_welcome()

    while True:
        try:
            user_input = session.prompt([("class:prompt", PROMPT_TEXT)]).strip()

            if not user_input:
                continue

            if user_input == "exit":
                print("Goodbye!")
                break

            if user_input == "help":
                print(HELP_TEXT)
                continue

            if user_input == "clear":
                clear_screen()
                show_welcome()
                continue

            print(dispatch_command(parse_command(user_input)))

        except ParseError as e:
            print(f"Error: {e}")
        except KeyboardInterrupt:
            continue
        except EOFError:
            print("\nGoodbye!")
            break

    get_client().close()
