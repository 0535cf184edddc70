"""Command parser for CLI input."""

import shlex

from cli.models import (
    CommandRequest,
    DownloadCommand,
    ListCommand,
    RefreshCommand,
    ServerCommand,
    UploadCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]

    if command_name == "upload":
        return _parse_upload(tokens[1:])
    elif command_name == "list":
        return _parse_list(tokens[1:])
    elif command_name == "download":
        return _parse_download(tokens[1:])
    elif command_name == "refresh":
        return _parse_refresh(tokens[1:])
    elif command_name == "server":
        return _parse_server(tokens[1:])
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <path> [<path> ...]' command."""
    if not args:
        raise ParseError("upload requires at least one file")

    return UploadCommand(file_list=tuple(args))


def _parse_list(args: list[str]) -> ListCommand:
    """Parse 'list' command."""
    if args:
        raise ParseError("list takes no arguments")

    return ListCommand()


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download <stored-name> [output_path]' command."""
    if len(args) < 1 or len(args) > 2:
        raise ParseError("download requires 1 or 2 arguments: <stored-name> [output_path]")

    filename = args[0]
    output_path = args[1] if len(args) > 1 else None

    return DownloadCommand(filename=filename, output_path=output_path)


def _parse_refresh(args: list[str]) -> RefreshCommand:
    """Parse 'refresh' command."""
    if args:
        raise ParseError("refresh takes no arguments")

    return RefreshCommand()


def _parse_server(args: list[str]) -> ServerCommand:
    """Parse 'server <host> <port>' command."""
    if len(args) != 2:
        raise ParseError("server requires exactly 2 arguments: <host> <port>")

    host, port_str = args
    try:
        port = int(port_str)
    except ValueError:
        raise ParseError(f"Invalid port: {port_str}")
    if not 0 < port < 65536:
        raise ParseError(f"Invalid port: {port_str}")

    return ServerCommand(host=host, port=port)
