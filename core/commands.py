"""Slash commands advertised to the protocol at registration time."""
import re
from dataclasses import dataclass
from typing import Iterable, Tuple

_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


@dataclass(frozen=True)
class SlashCommandSpec:
    name: str
    description: str

    def __post_init__(self) -> None:
        if not _NAME_RE.match(self.name):
            raise ValueError(f"invalid slash command name {self.name!r}")
        if not self.description.strip():
            raise ValueError(f"slash command {self.name!r} needs a description")


def validate_commands(commands: Iterable[SlashCommandSpec]) -> Tuple[SlashCommandSpec, ...]:
    """Check names are unique and return the commands as a tuple."""
    result = tuple(commands)
    seen = set()
    for cmd in result:
        if cmd.name in seen:
            raise ValueError(f"duplicate slash command {cmd.name!r}")
        seen.add(cmd.name)
    return result


BOT_COMMANDS = validate_commands(
    [
        SlashCommandSpec(name="help", description="Get help with bot commands"),
        SlashCommandSpec(name="time", description="Get the current time"),
    ]
)
