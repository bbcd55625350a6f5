"""Platform-neutral reply rendering for leaguebot.

Commands render their output into Reply objects; the chat adapter
(bot.py) converts them into platform messages and embeds. Keeping the
rendering neutral lets the dispatcher and commands be tested without
a live chat connection.

Key classes:
    Reply: One outbound message (text, optional embed).
    Embed: Rich card with title, description, colour and fields.
    EmbedField: One named block inside an Embed.
"""

from dataclasses import dataclass, field
from typing import List, Optional

GENERIC_FAILURE = (
    "草. Something went wrong. Please contact bot writer and let them "
    "know they did a poor job."
)

CONNECTION_FAILURE = "Seems like the server refuses to connect."


@dataclass
class EmbedField:
    """A named block of text inside an embed."""
    name: str
    value: str
    inline: bool = False


@dataclass
class Embed:
    """A rich card rendered by the chat adapter.

    Attributes:
        title: Card heading.
        description: Body text under the title.
        colour: RGB integer, usually taken from the configured palette.
        thumbnail: Optional image URL shown in the corner.
        footer: Optional small text at the bottom.
        fields: Ordered list of EmbedField blocks.
    """
    title: str = ""
    description: str = ""
    colour: Optional[int] = None
    thumbnail: Optional[str] = None
    footer: Optional[str] = None
    fields: List[EmbedField] = field(default_factory=list)

    def add_field(self, name: str, value: str, inline: bool = False) -> "Embed":
        self.fields.append(EmbedField(name=name, value=value, inline=inline))
        return self


@dataclass
class Reply:
    """One outbound message.

    Attributes:
        text: Plain message content (may be empty when embed is set).
        embed: Optional rich card.
        as_reply: Post as a direct reply to the invoking message
            instead of a plain channel message.
    """
    text: str = ""
    embed: Optional[Embed] = None
    as_reply: bool = False


def response_fail(mention: str, reason: str) -> Reply:
    """Standard failure message shown when a backend request is refused."""
    return Reply(text=f"Operation failed, {mention}. {reason}")


def format_points(points: Optional[float]) -> str:
    """Format a point total with four significant digits (``%.4g``)."""
    return "%.4g" % (points or 0)


def bool_to_emote(value: bool) -> str:
    return "✅" if value else "❌"
