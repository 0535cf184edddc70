"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["upload", "list", "download", "refresh", "server", "clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#2E86AB bold",
        "command": "#0088ff bold",
    }
)

BLUE = "\033[38;2;46;134;171m"
GREEN = "\033[32m"
RESET = "\033[0m"

LOGO = f"""{BLUE}
  _____ _ _      ____  _          _  __
 |  ___(_) | ___/ ___|| |__   ___| |/ _|
 | |_  | | |/ _ \\___ \\| '_ \\ / _ \\ | |_
 |  _| | | |  __/___) | | | |  __/ |  _|
 |_|   |_|_|\\___|____/|_| |_|\\___|_|_|
{RESET}"""

WELCOME_TITLE = "FileShelf CLI - shared folder with live updates"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "fileshelf> "

HELP_TEXT = """Available commands:
  upload <path> [<path> ...]          Upload one or more local files (one request per file)
  list                                List shared files, newest first
  download <stored-name> [output]     Download a file (defaults to the download directory)
  refresh                             Ask the server to tell every client to reload its list
  server <host> <port>                Point the CLI at another server
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Exit REPL

Stored names are shown by 'list' (the part before '__' keeps them unique).
Examples:
  upload report.pdf "holiday photo.jpg"
  list
  download 1700000000000-42__report.pdf
  download 1700000000000-42__report.pdf downloads/renamed.pdf
  refresh"""
