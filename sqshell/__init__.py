"""
This is an interactive SQL shell front end. It reads lines from the user,
treats lines starting with a backslash as shell commands (tokenized with
shell-like quoting, variable expansion, backticks, redirection and pipes),
and collects everything else into a SQL batch. After each line, the batch is
handed to the terminator analyzer for the current SQL dialect; once it says
the batch is terminated, the batch is dispatched and a new one begins.

The shell doesn't talk to a database. Dispatching a batch prints it, so the
shell can also be used (with a script file) to split a SQL script into
batches the same way it would be split interactively.

Run with -h or --help for an extended usage message.
"""

# pylint: disable=too-many-lines,fixme,too-few-public-methods

import atexit
import io
import logging
import os
import re
import readline
import sys
import textwrap
from contextlib import ExitStack, contextmanager, suppress
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Callable, Iterator, TextIO
from typing import Sequence as Seq

import click
from termcolor import colored

from sqshell.analyzers import AnalyzerName, SQLAnalyzer, get_analyzer
from sqshell.buffer import Buffer
from sqshell.config import (
    DEFAULT_TERMINATOR,
    ConfigurationError,
    ShellConfig,
    load_configuration,
)
from sqshell.cursor import WHITESPACE
from sqshell.errors import (
    AbortError,
    CommandLineSyntaxError,
    ShellError,
    SQLShellException,
    UnknownAnalyzerError,
)
from sqshell.expander import (
    ENVIRONMENT_EXPANDER,
    ChainExpander,
    MapExpander,
    from_field_separator,
    to_field_separator,
)
from sqshell.shell import ShellRunner
from sqshell.tokenizer import CommandLineTokenizer
from sqshell.tokens import (
    FdDupToken,
    PipeToken,
    RedirectOutToken,
    SessionRedirectToken,
    TerminatorToken,
    Token,
    WordToken,
)

NAME = "sqshell"
VERSION = "0.1.0"
CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
HISTORY_LENGTH = 10000
# Note that Python's readline library can be based on GNU Readline
# or the BSD Editline library, and it's not selectable. It's whatever
# has been compiled in. They use different initialization files, so we'll
# load whichever one is appropriate.
EDITLINE_BINDINGS_FILE = Path("~/.editrc").expanduser()
READLINE_BINDINGS_FILE = Path("~/.inputrc").expanduser()
DEFAULT_SCREEN_WIDTH = 79
DEFAULT_HISTORY_FILE = Path("~/.sqshell-history").expanduser()
DEFAULT_CONFIG_FILE = Path("~/.sqshell.cfg").expanduser()
COMMAND_PREFIX = "\\"
DIGITS = re.compile(r"^\d+$")
MULTI_WHITESPACE = re.compile(r"\s\s\s*")
# The special "ifs" variable controls how backtick output is split.
IFS_VARIABLE = "ifs"

logger = logging.getLogger(__name__)


class Command(StrEnum):
    """
    Commands the shell supports. Anything else is SQL.
    """

    ANALYZER = "\\analyzer"
    BUF = "\\buf"
    ECHO = "\\echo"
    GO = "\\go"
    HELP1 = "\\help"
    HELP2 = "\\?"
    HISTORY = "\\history"
    QUIT1 = "\\quit"
    QUIT2 = "\\exit"
    RESET = "\\reset"
    SET = "\\set"
    TERMINATOR = "\\terminator"
    UNSET = "\\unset"


@dataclass(frozen=True)
class HelpTopic:
    """
    A help topic, consisting of a command or commands, a usage line, and
    help text. The help text can be a multi-line string, for readability. The
    newlines will be removed.
    """

    commands: Seq[Command]
    usage: str
    help: str


HELP: Seq[HelpTopic] = (
    HelpTopic(
        commands=(Command.QUIT1, Command.QUIT2),
        usage=f"{Command.QUIT1.value} or {Command.QUIT2.value} or Ctrl-D",
        help=f"Quit {NAME}.",
    ),
    HelpTopic(
        commands=(Command.ANALYZER,),
        usage=f"{Command.ANALYZER.value} [<name>]",
        help=f"""
Show the SQL analyzer used to decide when a batch is terminated, or switch to
analyzer <name>. Valid names are: {", ".join(n.value for n in AnalyzerName)}.
""",
    ),
    HelpTopic(
        commands=(Command.BUF,),
        usage=f"{Command.BUF.value}",
        help="Show the SQL batch collected so far.",
    ),
    HelpTopic(
        commands=(Command.ECHO,),
        usage=f"{Command.ECHO.value} [<word> ...]",
        help="""
Print the words, after quote removal, variable expansion and backtick
expansion. Output can be redirected with >, >>, 2>&1 and so on, or piped to a
shell command with |.
""",
    ),
    HelpTopic(
        commands=(Command.GO,),
        usage=f"{Command.GO.value}",
        help="Send the current batch, whether or not it is terminated.",
    ),
    HelpTopic(
        commands=(Command.HELP1, Command.HELP2),
        usage=f"{Command.HELP1.value} or {Command.HELP2.value} [<command>]",
        help="""
Show help for <command>. If <command> is omitted, show help for all commands.
""",
    ),
    HelpTopic(
        commands=(Command.HISTORY,),
        usage=f"{Command.HISTORY.value} [<n> | <re>]",
        help=r"""
Show the batches sent so far. If <n>, an integer, is supplied, show the last
<n> batches. If <re> is supplied, show the batches that match the regular
expression <re>. If your pattern contains spaces or regular expression
backslash sequences (e.g., \s), be sure to enclose it in single quotes.
""",
    ),
    HelpTopic(
        commands=(Command.RESET,),
        usage=f"{Command.RESET.value}",
        help="Throw away the current batch.",
    ),
    HelpTopic(
        commands=(Command.SET,),
        usage=f"{Command.SET.value} [<name>=<value>]",
        help=f"""
Set a variable, which can then be referenced as $<name> or ${{<name>}} in
commands. With no arguments, show all variables. Setting "{IFS_VARIABLE}"
changes the characters on which backtick output is split (\\t, \\n, \\r and
\\s are recognized).
""",
    ),
    HelpTopic(
        commands=(Command.TERMINATOR,),
        usage=f"{Command.TERMINATOR.value} [<char>]",
        help="Show or change the batch terminator character.",
    ),
    HelpTopic(
        commands=(Command.UNSET,),
        usage=f"{Command.UNSET.value} <name>",
        help="Remove a variable.",
    ),
)

HELP_EPILOG = (
    "Anything else is interpreted as SQL. SQL may span multiple lines, and "
    "the batch is sent once it ends with the terminator (normally \";\"). "
    "Terminators inside strings, quoted identifiers and comments don't count, "
    "and, depending on the analyzer, neither do terminators inside procedural "
    "blocks.",
)


match os.environ.get("COLUMNS"):
    case None:
        SCREEN_WIDTH = DEFAULT_SCREEN_WIDTH
    case s_width:
        try:
            SCREEN_WIDTH = int(s_width)
        except ValueError:
            SCREEN_WIDTH = DEFAULT_SCREEN_WIDTH
            print(
                "The COLUMNS environment variable has an invalid value of "
                f'"{s_width}". Using screen width of {DEFAULT_SCREEN_WIDTH}.'
            )


def error(msg: str) -> None:
    """
    Print error messages in a consistent way.
    """
    print(f"{colored('Error:', 'red')} {msg}", file=sys.stderr)


def emit_batch(batch: str) -> None:
    """
    The default batch handler: print the batch, followed by a blank line.
    """
    print(f"{batch}\n")


# pylint: disable=too-many-instance-attributes
@dataclass
class Session:
    """
    The state of a shell session: the current analyzer and terminator, the
    session variables, and the SQL batch being collected.
    """

    analyzer: SQLAnalyzer
    terminator: str = DEFAULT_TERMINATOR
    variables: MapExpander = field(default_factory=MapExpander)
    shell_runner: ShellRunner = field(default_factory=ShellRunner)
    field_separator: str = WHITESPACE
    expand_backticks: bool = True
    buffer: Buffer = field(default_factory=Buffer)
    on_batch: Callable[[str], None] = emit_batch

    @classmethod
    def from_config(cls, config: ShellConfig) -> "Session":
        """
        Create a session from the configuration settings.
        """
        return cls(
            analyzer=get_analyzer(config.analyzer),
            terminator=config.terminator,
            variables=MapExpander(config.variables),
            shell_runner=ShellRunner(config.shell_command),
            field_separator=config.field_separator,
            expand_backticks=config.expand_backticks,
        )

    def tokenizer(self, line: str) -> CommandLineTokenizer:
        """
        Create a tokenizer for a command line. Session variables hide
        environment variables of the same name.
        """
        return CommandLineTokenizer(
            line,
            terminator=self.terminator,
            expander=ChainExpander(self.variables, ENVIRONMENT_EXPANDER),
            expand_backticks=self.expand_backticks,
            field_separator=self.field_separator,
            shell_runner=self.shell_runner,
        )


def is_command(line: str) -> bool:
    """
    Returns True if the line is a shell command rather than SQL.
    """
    return line.lstrip().startswith(COMMAND_PREFIX)


def split_command(tokens: Seq[Token]) -> tuple[list[str], list[Token]]:
    """
    Split the tokens of a command line into the command's words and the
    redirections that apply to its output. Anything after a terminator is
    ignored.
    """
    words: list[str] = []
    redirections: list[Token] = []
    for token in tokens:
        match token:
            case TerminatorToken():
                break
            case WordToken(text=text):
                words.append(text)
            case _:
                redirections.append(token)

    return (words, redirections)


@contextmanager
def redirected_output(
    redirections: Seq[Token], session: Session
) -> Iterator[tuple[TextIO, TextIO]]:
    """
    Set up the output streams for a command, honoring its redirections in
    the order they were given. Yields the (stdout, stderr) pair to write to.
    If the output is piped, it is collected and fed to the shell command
    once the command is done.

    :raises: SQLShellException for a redirection that can't be done
    """
    pipe_command: str | None = None
    collected = io.StringIO()
    streams: dict[int, TextIO] = {1: sys.stdout, 2: sys.stderr}

    # The pipe always comes last on the line, but it's set up first.
    for token in redirections:
        if isinstance(token, PipeToken):
            pipe_command = token.command
            streams[1] = collected

    with ExitStack() as stack:
        for token in redirections:
            match token:
                case RedirectOutToken(fd=fd, filename=filename, append=append):
                    path = Path(filename).expanduser()
                    try:
                        streams[fd] = stack.enter_context(
                            path.open(mode="a" if append else "w", encoding="utf-8")
                        )
                    except OSError as e:
                        # pylint: disable=raise-missing-from
                        raise SQLShellException(f'Cannot write "{path}": {e}')
                case FdDupToken(from_fd=from_fd, to_fd=to_fd):
                    if to_fd not in streams:
                        raise SQLShellException(f"Bad file descriptor: {to_fd}")
                    streams[from_fd] = streams[to_fd]
                case SessionRedirectToken():
                    raise SQLShellException(
                        "Redirecting output to a session is not supported."
                    )
                case _:
                    pass

        yield (streams[1], streams[2])

    if pipe_command is not None:
        try:
            session.shell_runner.pipe(pipe_command, collected.getvalue())
        except ShellError as e:
            # pylint: disable=raise-missing-from
            raise SQLShellException(f"Failed to execute: {pipe_command}: {e}")


def print_help(command: str | None = None) -> None:
    """
    Display the help output.

    :param command: The command for which help is being requested, or None
         for general help on all commands
    """

    def collapse_help(text: str) -> str:
        """
        Remove leading and trailing blank lines from a help string, and
        replace all newlines with blanks. Also, collapse adjacent blanks into
        a single blank.
        """
        return MULTI_WHITESPACE.sub(" ", text.strip().replace("\n", " "))

    help_topics: list[HelpTopic]

    if command is None:
        help_topics = list(HELP)
    else:
        # Allow "\help go" as well as "\help \go".
        if not command.startswith(COMMAND_PREFIX):
            command = COMMAND_PREFIX + command

        help_topics = [
            topic
            for topic in HELP
            if command in [cmd.value for cmd in topic.commands]
        ]

        if len(help_topics) == 0:
            error(f'Unknown command "{command}".')
            return

    prefix_width: int = 0
    for topic in help_topics:
        prefix_width = max(prefix_width, len(topic.usage))

    # How much room do we have left for text? Allow for separating " - ".

    max_width = SCREEN_WIDTH - 1  # 1-character right margin
    separator = " - "
    text_width = max_width - len(separator) - prefix_width
    if text_width < 0:
        text_width = DEFAULT_SCREEN_WIDTH // 2

    for topic in help_topics:
        padded_prefix = topic.usage.ljust(prefix_width)
        adj_help = collapse_help(topic.help)
        text_lines = textwrap.wrap(adj_help, width=text_width)
        print(f"{padded_prefix}{separator}{text_lines[0]}")
        for text_line in text_lines[1:]:
            padding = " " * (prefix_width + len(separator))
            print(f"{padding}{text_line}")

    if command is None:
        print("")
        for line in HELP_EPILOG:
            print(textwrap.fill(line, width=SCREEN_WIDTH))


def format_history_item(batch: str, index: int) -> str:
    """
    Format a single history entry. Continuation lines are indented to line
    up with the first one.

    :param batch: The batch text
    :param index: The index (number) of the history entry
    """
    return f"{index:5d}. " + batch.replace("\n", "\n" + " " * 7)


def show_history(session: Session, total: int = 0) -> None:
    """
    Display the batch history.

    :param total: How many batches to show, or 0 for all of them.
    """
    history_items = list(enumerate(session.buffer.history, start=1))

    match total:
        case n if n <= 0:
            pass
        case n if n > 0:
            history_items = history_items[-n:]

    for i, batch in history_items:
        print(format_history_item(batch, i))


def show_history_matching(session: Session, pattern: str) -> None:
    """
    Show all history entries matching a regular expression.
    """
    try:
        pat = re.compile(pattern)
    except re.error as e:
        error(f"Bad regular expression: {e}")
        return

    for i, batch in enumerate(session.buffer.history, start=1):
        if pat.search(batch) is not None:
            print(format_history_item(batch, i))


def show_variables(session: Session, out: TextIO) -> None:
    for name in sorted(session.variables.variables):
        print(f"{name}={session.variables.variables[name]}", file=out)


def set_variable(session: Session, assignment: str) -> None:
    """
    Handle "\\set name=value". Setting the "ifs" variable also changes the
    field separator used for backtick output.
    """
    name, sep, value = assignment.partition("=")
    if sep == "" or name.strip() == "":
        print(f"Usage: {Command.SET.value} <name>=<value>")
        return

    name = name.strip()
    session.variables.variables[name] = value
    if name == IFS_VARIABLE:
        session.field_separator = to_field_separator(value)


def unset_variable(session: Session, name: str) -> None:
    if session.variables.variables.pop(name, None) is None:
        error(f'Variable "{name}" is not set.')
    elif name == IFS_VARIABLE:
        session.field_separator = WHITESPACE


def send_batch(session: Session) -> None:
    """
    Dispatch the current batch (if there's anything in it) and start a new
    one.
    """
    if session.buffer.text.strip() == "":
        session.buffer.clear()
        return

    batch = session.buffer.finish()
    logger.debug("Dispatching batch of %d characters", len(batch))
    session.on_batch(batch)


# pylint: disable=too-many-branches,too-many-statements
def run_command(words: list[str], out: TextIO, session: Session) -> bool:
    """
    Run a single shell command.

    :param words: the command and its arguments
    :param out: where the command's output goes
    :param session: the current session

    :returns: False if the shell should exit, True otherwise
    """
    match words:
        case []:
            pass

        case [Command.QUIT1.value | Command.QUIT2.value]:
            return False

        case [(Command.QUIT1.value | Command.QUIT2.value), *_]:
            print(
                f"{Command.QUIT1.value} and {Command.QUIT2.value} "
                "take no parameters."
            )

        case [Command.ECHO.value, *args]:
            print(" ".join(args), file=out)

        case [Command.SET.value]:
            show_variables(session, out)

        case [Command.SET.value, assignment]:
            set_variable(session, assignment)

        case [Command.SET.value, *_]:
            print(f"Usage: {Command.SET.value} <name>=<value>")

        case [Command.UNSET.value, name]:
            unset_variable(session, name)

        case [Command.UNSET.value, *_]:
            print(f"Usage: {Command.UNSET.value} <name>")

        case [Command.ANALYZER.value]:
            print(session.analyzer.get_name(), file=out)

        case [Command.ANALYZER.value, name]:
            try:
                session.analyzer = get_analyzer(name)
            except UnknownAnalyzerError as e:
                error(str(e))

        case [Command.ANALYZER.value, *_]:
            print(f"Usage: {Command.ANALYZER.value} [<name>]")

        case [Command.TERMINATOR.value]:
            print(session.terminator, file=out)

        case [Command.TERMINATOR.value, t] if len(t) == 1 and not t.isspace():
            session.terminator = t

        case [Command.TERMINATOR.value, *_]:
            print(f"Usage: {Command.TERMINATOR.value} <char>")

        case [Command.GO.value]:
            send_batch(session)

        case [Command.RESET.value]:
            session.buffer.clear()

        case [Command.BUF.value]:
            for line in session.buffer.numbered():
                print(line, file=out)

        case [Command.HISTORY.value]:
            show_history(session)

        case [Command.HISTORY.value, n] if DIGITS.match(n) is not None:
            show_history(session, int(n))

        case [Command.HISTORY.value, pattern]:
            show_history_matching(session, pattern)

        case [Command.HISTORY.value, *_]:
            print(f"Usage: {Command.HISTORY.value} [<n> | <re>]")

        case [Command.HELP1.value | Command.HELP2.value]:
            print_help()

        case [(Command.HELP1.value | Command.HELP2.value), topic]:
            print_help(topic)

        case [(Command.HELP1.value | Command.HELP2.value), *_]:
            print(f"Usage: {Command.HELP1.value} [<command>]")

        case [(Command.GO.value | Command.RESET.value | Command.BUF.value), *_]:
            print(f"{words[0]} takes no parameters.")

        case [cmd, *_]:
            error(f'"{cmd}" is an unknown command. Type {Command.HELP1.value} for help.')

    return True


def process_line(line: str, session: Session) -> bool:
    """
    Process one line of input: run it, if it's a command, or add it to the
    current batch, if it's SQL. A SQL line that terminates the batch causes
    the batch to be dispatched.

    :returns: False if the shell should exit, True otherwise
    """
    if is_command(line):
        try:
            words, redirections = split_command(list(session.tokenizer(line)))
            with redirected_output(redirections, session) as (out, _):
                return run_command(words, out, session)
        except CommandLineSyntaxError as e:
            error(e.format())
        except SQLShellException as e:
            error(str(e))
        return True

    # Don't start a batch with blank lines.
    if session.buffer.is_empty() and line.strip() == "":
        return True

    session.buffer.append(line)
    if session.analyzer.is_terminated(session.buffer.text, session.terminator):
        send_batch(session)

    return True


def run_script(path: Path, session: Session) -> bool:
    """
    Read and process a script file, which may contain multiple SQL batches
    as well as commands.

    :param path: the path to the script

    :returns: True if the whole file was processed, False on error
    """
    path = path.expanduser()
    if not (path.exists() and path.is_file()):
        error(f'File "{path}" does not exist or is not a regular file.')
        return False

    with path.open(mode="r", encoding="utf-8") as f:
        lines = f.read().splitlines()

    statement_starting_line = 0
    for lno, line in enumerate(lines, start=1):
        if session.buffer.is_empty():
            # Starting fresh. Mark the starting line of the statement.
            statement_starting_line = lno

        if not process_line(line, session):
            if session.buffer.text.strip() != "":
                error(
                    f'"{path}", line {statement_starting_line}: Quit with '
                    "an incomplete SQL statement."
                )
                return False
            return True

    if session.buffer.text.strip() != "":
        error(
            f'"{path}", line {statement_starting_line}: File ended with '
            "an incomplete SQL statement."
        )
        return False

    return True


def init_history(history_path: Path) -> None:
    """
    Load the local readline history file, and arrange for it to be saved
    on exit.

    :param history_path: Path of the history file. It doesn't have to exist.
    """
    with suppress(FileNotFoundError):
        print(f'Loading history from "{history_path}".')
        readline.read_history_file(str(history_path))

    # default history len is -1 (infinite), which may grow unruly
    readline.set_history_length(HISTORY_LENGTH)
    atexit.register(readline.write_history_file, str(history_path))


def init_bindings_and_completion() -> None:
    """
    Initialize readline bindings, and completion of command names.
    """

    def command_completer(text: str, state: int) -> str | None:
        """
        A readline completer for the shell commands. SQL isn't completed.
        """
        commands = [cmd.value for cmd in Command]
        full_line = readline.get_line_buffer()

        match full_line.lstrip().split():
            case []:
                options = commands
            case [s] if not full_line.endswith(" "):
                options = [c for c in commands if c.startswith(s)]
            case [s, *_] if s in (Command.HELP1.value, Command.HELP2.value):
                options = [c for c in commands if c.startswith(text)]
            case [s, *_] if s == Command.ANALYZER.value:
                options = [n.value for n in AnalyzerName if n.value.startswith(text)]
            case _:
                options = []

        if state < len(options):
            return options[state]

        return None

    if (readline.__doc__ is not None) and ("libedit" in readline.__doc__):
        init_file = EDITLINE_BINDINGS_FILE
        print("Using editline (libedit).")
        completion_binding = "bind '^I' rl_complete"
    else:
        print("Using GNU readline.")
        init_file = READLINE_BINDINGS_FILE
        completion_binding = "Control-I: rl_complete"

    if init_file.exists():
        print(f'Loading bindings from "{init_file}"')
        readline.read_init_file(init_file)

    # Backslash starts a command, so it can't be a word delimiter.
    readline.set_completer_delims(" \t\n")
    readline.parse_and_bind(completion_binding)
    readline.set_completer(command_completer)


def make_prompt(session: Session) -> str:
    """
    Make the prompt for the command loop. The number is the line number
    within the current batch.
    """
    prompt = f"[{session.analyzer.get_name()}] {len(session.buffer) + 1}> "
    return colored(prompt, "cyan", attrs=["bold"])


def run_command_loop(session: Session, history_path: Path) -> None:
    """
    Read and process lines until the user quits.

    :param session: the session
    :param history_path: the path to the history file to use, which does not
        have to exist
    """
    print(colored(f"{NAME}, version {VERSION}\n", "blue", attrs=["bold"]))
    init_history(history_path)
    init_bindings_and_completion()
    print(f"\nType {Command.HELP1.value} for help on {NAME} commands")

    while True:
        try:
            # input() automatically uses the readline library, if it's
            # been loaded.
            line = input(make_prompt(session))
            if not process_line(line, session):
                break

        except EOFError:
            # Ctrl-D to input().
            print()
            break
        except KeyboardInterrupt:
            # Ctrl-C throws away the batch in progress.
            print()
            session.buffer.clear()
            continue


@click.command(name=NAME, context_settings=CLICK_CONTEXT_SETTINGS)
@click.option(
    "-H",
    "--history",
    is_flag=False,
    default=None,
    help="Specify location of the history file. Overrides the configuration. "
    f"[default: {DEFAULT_HISTORY_FILE}]",
)
@click.option(
    "-c",
    "--config",
    is_flag=False,
    default=str(DEFAULT_CONFIG_FILE),
    show_default=True,
    type=click.Path(dir_okay=False),
    help="The location of the optional configuration file.",
)
@click.option(
    "-a",
    "--analyzer",
    type=click.Choice([n.value for n in AnalyzerName], case_sensitive=False),
    default=None,
    help="The SQL analyzer that decides when a batch is terminated. "
    f"Overrides the configuration. [default: {AnalyzerName.ANSI.value}]",
)
@click.option(
    "-t",
    "--terminator",
    default=None,
    help="The batch terminator character. Overrides the configuration. "
    f'[default: "{DEFAULT_TERMINATOR}"]',
)
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.version_option(VERSION)
@click.argument(
    "script", required=False, type=click.Path(exists=True, dir_okay=False)
)
# pylint: disable=too-many-arguments,too-many-positional-arguments
def main(
    script: str | None,
    history: str | None,
    config: str,
    analyzer: str | None,
    terminator: str | None,
    debug: bool,
) -> None:
    """
    Prompt for SQL and shell commands, collecting SQL into batches. A batch
    is complete when it ends with the terminator character, as decided by
    the SQL analyzer for your dialect (for example, with the "snowflake"
    analyzer, semicolons inside a Snowflake Scripting block don't end the
    batch). Completed batches are printed.

    If SCRIPT is given, it is read instead of the terminal, and each batch in
    it is printed in turn. This splits a SQL script into batches exactly as
    they would be split interactively.

    Commands start with a backslash. Type \\help at the prompt for a list.

    The configuration file is TOML. A [shell] section may set "terminator",
    "analyzer", "ifs", "shell" (e.g. "/bin/bash,-c,?"), "history" and
    "expand_backticks"; a [variables] section sets initial variables.
    """
    if debug:
        logging.basicConfig(
            level=logging.DEBUG, format="%(name)s: %(levelname)s: %(message)s"
        )

    try:
        shell_config = ShellConfig()
        p_config = Path(config)
        if not p_config.exists():
            if script is None:
                print(f'WARNING: Configuration file "{config}" does not exist.')
        elif not p_config.is_file():
            raise AbortError(f'Configuration file "{config}" is not a file.')
        else:
            shell_config = load_configuration(p_config)

        session = Session.from_config(shell_config)
        if analyzer is not None:
            session.analyzer = get_analyzer(analyzer)
        if terminator is not None:
            if len(terminator) != 1:
                raise AbortError(
                    f'The terminator must be a single character, not "{terminator}".'
                )
            session.terminator = terminator

        logger.debug(
            "Analyzer %s, terminator %r, field separator %r",
            session.analyzer.get_name(),
            session.terminator,
            from_field_separator(session.field_separator),
        )

        if script is not None:
            if not run_script(Path(script), session):
                sys.exit(1)
            return

        history_path = (
            Path(history)
            if history is not None
            else shell_config.history_file or DEFAULT_HISTORY_FILE
        )
        run_command_loop(session, history_path.expanduser())

    except (AbortError, ConfigurationError, UnknownAnalyzerError) as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    # pylint: disable=no-value-for-parameter
    main()
