"""Interactive console for driving one user's moderation record by hand."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
import os

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import PromptSession

from chatglass.datatypes.message_datatypes import (
    MalformedPayload,
    MessageSent,
    RetrieveMessages,
    decode_message,
    encode_message,
)
from chatglass.datatypes.user_datatypes import User
from chatglass.moderation.glass_moderation import GlassModeration
from chatglass.moderation.moderation_errors import (
    ClassificationFailed,
    InappropriateContent,
    ModerationError,
    UserMuted,
)
from chatglass.util.logger import get_logger

# Box drawing helpers for aligned console output
BOX_WIDTH = 45

def box_title(title: str) -> list[str]:
    inner_width = BOX_WIDTH - 2
    pad_left = (inner_width - len(title)) // 2
    pad_right = inner_width - len(title) - pad_left
    return [
        f"╔{'═' * inner_width}╗",
        f"║{' ' * pad_left}{title}{' ' * pad_right}║",
        f"╚{'═' * inner_width}╝"
    ]

logger = get_logger("console")

# Type alias for command handler functions
CommandHandler = Callable[["ConsoleControl", list[str]], Awaitable[None]]

# Replies shown to the operator for each moderation failure
ERROR_REPLIES: dict[type[ModerationError], str] = {
    UserMuted: "You are muted.",
    InappropriateContent: "Message rejected as inappropriate.",
    ClassificationFailed: "Message could not be checked, try again.",
}


@dataclass
class Command:
    """Definition of a console command."""
    name: str
    handler: CommandHandler
    aliases: list[str]
    description: str
    usage: str = ""
    # Receive the rest of the line untouched as a single argument
    raw: bool = False

    def matches(self, input_cmd: str) -> bool:
        """Check if input matches this command or any alias."""
        return input_cmd == self.name or input_cmd in self.aliases


def console_print(message: str, style: str = "") -> None:
    """Render text via prompt_toolkit without breaking the active prompt."""
    formatted: FormattedText | str
    if style:
        formatted = FormattedText([(style, message)])
    else:
        formatted = message
    print_formatted_text(formatted)


@dataclass
class ConsoleControl:
    """State shared by console commands: the engine, the user and their accepted messages."""

    engine: GlassModeration
    user: User
    history: list[str] = field(default_factory=list)
    shutdown_event: asyncio.Event = field(default_factory=asyncio.Event)

    def request_shutdown(self) -> None:
        self.shutdown_event.set()

    def is_shutdown_requested(self) -> bool:
        return self.shutdown_event.is_set()

    def send(self, message: MessageSent) -> str | None:
        """Moderate a message and record it on success.

        Returns the delivered text, or None if the message was refused.
        """
        try:
            delivered = self.engine.process(self.user.glass, message.msg)
        except ModerationError as exc:
            console_print(ERROR_REPLIES.get(type(exc), str(exc)), "ansired")
            return None

        self.history.append(delivered)
        console_print(f"{message.user}: {delivered}")
        return delivered


# ==================== Command Handlers ====================

async def cmd_help(control: ConsoleControl, args: list[str]) -> None:
    """Display available commands and their descriptions."""
    for line in box_title("Console Commands Reference"):
        console_print(line, "ansigreen")

    for cmd in COMMANDS:
        aliases_str = f" (aliases: {', '.join(cmd.aliases)})" if cmd.aliases else ""
        console_print(f"\n  {cmd.name}{aliases_str}", "ansicyan")
        console_print(f"    {cmd.description}")
        if cmd.usage:
            console_print(f"    Usage: {cmd.usage}", "ansibrightblack")

    console_print("")


async def cmd_say(control: ConsoleControl, args: list[str]) -> None:
    """Send a message as the console user."""
    if not args:
        console_print("Nothing to say.", "ansiyellow")
        return
    control.send(MessageSent(msg=args[0], user=control.user.name))


async def cmd_payload(control: ConsoleControl, args: list[str]) -> None:
    """Decode a raw JSON payload and act on it."""
    try:
        message = decode_message(args[0] if args else "")
    except MalformedPayload as exc:
        console_print(f"Malformed payload: {exc}", "ansired")
        return

    if isinstance(message, MessageSent):
        control.send(message)
    elif isinstance(message, RetrieveMessages):
        control.history.extend(message.msgs)
        console_print(f"Loaded {len(message.msgs)} message(s) into history.", "ansigreen")


async def cmd_history(control: ConsoleControl, args: list[str]) -> None:
    """Print the accepted messages as a history payload."""
    console_print(encode_message(RetrieveMessages(msgs=list(control.history))))


async def cmd_status(control: ConsoleControl, args: list[str]) -> None:
    """Display the user's moderation record."""
    for line in box_title("Moderation Status"):
        console_print(line, "ansiblue")
    console_print(f"  User:    {control.user.name} (ID: {control.user.id})")
    console_print(f"  Record:  {control.engine.status(control.user.glass)}")
    console_print("")


async def cmd_warn(control: ConsoleControl, args: list[str]) -> None:
    control.engine.warn(control.user.glass)
    console_print(control.engine.status(control.user.glass), "ansiyellow")


async def cmd_report(control: ConsoleControl, args: list[str]) -> None:
    control.engine.report(control.user.glass)
    console_print(control.engine.status(control.user.glass), "ansiyellow")


async def cmd_mute(control: ConsoleControl, args: list[str]) -> None:
    control.engine.mute(control.user.glass)
    console_print(control.engine.status(control.user.glass), "ansiyellow")


async def cmd_unmute(control: ConsoleControl, args: list[str]) -> None:
    control.engine.unmute(control.user.glass)
    console_print(control.engine.status(control.user.glass), "ansigreen")


async def cmd_clear(control: ConsoleControl, args: list[str]) -> None:
    """Clear the console screen."""
    os.system('cls' if os.name == 'nt' else 'clear')
    console_print("Console cleared.", "ansigreen")


async def cmd_shutdown(control: ConsoleControl, args: list[str]) -> None:
    console_print("Shutdown requested.", "ansiyellow")
    control.request_shutdown()


# ==================== Command Registry ====================

COMMANDS: list[Command] = [
    Command(
        name="help",
        handler=cmd_help,
        aliases=["h", "?"],
        description="Show this help message with all available commands",
    ),
    Command(
        name="say",
        handler=cmd_say,
        aliases=["s"],
        description="Send a message through the moderation filter",
        usage="say <text>",
        raw=True,
    ),
    Command(
        name="payload",
        handler=cmd_payload,
        aliases=["p"],
        description="Decode a raw JSON message payload and process it",
        usage='payload {"msg": "hi", "user": "alice"}',
        raw=True,
    ),
    Command(
        name="history",
        handler=cmd_history,
        aliases=["hist"],
        description="Show accepted messages as a history payload",
    ),
    Command(
        name="status",
        handler=cmd_status,
        aliases=["stat", "info"],
        description="Display warnings, reports and mute state",
    ),
    Command(
        name="warn",
        handler=cmd_warn,
        aliases=[],
        description="Issue a warning to the user",
    ),
    Command(
        name="report",
        handler=cmd_report,
        aliases=[],
        description="File a report against the user",
    ),
    Command(
        name="mute",
        handler=cmd_mute,
        aliases=[],
        description="Mute the user",
    ),
    Command(
        name="unmute",
        handler=cmd_unmute,
        aliases=[],
        description="Unmute the user (warnings and reports are kept)",
    ),
    Command(
        name="clear",
        handler=cmd_clear,
        aliases=["cls"],
        description="Clear the console screen",
    ),
    Command(
        name="shutdown",
        handler=cmd_shutdown,
        aliases=["stop", "quit", "exit"],
        description="Leave the console",
    ),
]


# ==================== Command Dispatcher ====================

async def handle_console_command(command: str, control: ConsoleControl) -> None:
    """Interpret and execute a single console command line."""
    if not command.strip():
        return

    parts = command.strip().split(maxsplit=1)
    cmd_name = parts[0].lower()
    rest = parts[1] if len(parts) > 1 else ""

    for cmd in COMMANDS:
        if cmd.matches(cmd_name):
            args = [rest] if cmd.raw and rest else rest.split()
            try:
                await cmd.handler(control, args)
            except Exception as exc:
                logger.exception("Error executing command '%s': %s", cmd_name, exc)
                console_print(f"Error executing command: {exc}", "ansired")
            return

    console_print(f"Unknown command '{cmd_name}'. Type 'help' for available commands.", "ansired")


async def run_console(control: ConsoleControl) -> None:
    """Run the interactive console until shutdown is requested."""
    session: PromptSession[str] = PromptSession("> ")

    for line in box_title("Chatglass Interactive Console"):
        console_print(line, "ansigreen")
    console_print("Type 'help' for available commands or 'exit' to quit.\n", "ansibrightblack")

    with patch_stdout():
        while not control.is_shutdown_requested():
            try:
                line = await session.prompt_async()
                if line.strip():
                    await handle_console_command(line, control)
            except (EOFError, KeyboardInterrupt):
                console_print("\nShutdown requested by user.", "ansiyellow")
                control.request_shutdown()
                break
