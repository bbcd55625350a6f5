"""Discord adapter for leaguebot.

Connects to Discord through discord.py, turns incoming messages into
InboundMessage values for the Dispatcher, and renders Reply objects
back into Discord messages, embeds and reactions. Owns the lifecycle
of the subsystems that need the event loop: the backend HTTP session,
cooldown timers, and the optional keep-alive server.

Key classes:
    DiscordResponder: Responder bound to one Discord message.
    LeagueBot: discord.Client subclass wiring events to the Dispatcher.

Key functions:
    to_discord_embed: Reply embed -> discord.Embed.
    to_inbound: discord.Message -> InboundMessage.
"""

from typing import Optional

import discord
import structlog

from .commands.base import ContextKind, InboundMessage, Invoker
from .dispatcher import Dispatcher, Responder
from .keepalive import KeepAliveServer
from .replies import Embed, Reply

logger = structlog.get_logger("leaguebot.bot")


def to_discord_embed(embed: Embed) -> discord.Embed:
    """Convert a neutral Embed into a discord.Embed."""
    result = discord.Embed(
        title=embed.title or None,
        description=embed.description or None,
        colour=embed.colour,
    )
    if embed.thumbnail:
        result.set_thumbnail(url=embed.thumbnail)
    if embed.footer:
        result.set_footer(text=embed.footer)
    for field in embed.fields:
        result.add_field(name=field.name, value=field.value, inline=field.inline)
    return result


def to_inbound(message: discord.Message) -> InboundMessage:
    """Describe a Discord message in dispatcher terms.

    Administrator privilege is read from the author's guild
    permissions; in DMs nobody is an administrator.
    """
    author = message.author
    in_guild = message.guild is not None
    permissions = getattr(author, "guild_permissions", None)
    is_admin = bool(in_guild and permissions is not None and permissions.administrator)
    invoker = Invoker(
        id=str(author.id),
        username=author.name,
        discriminator=str(getattr(author, "discriminator", "0")),
        mention=author.mention,
        is_admin=is_admin,
    )
    return InboundMessage(
        text=message.content,
        invoker=invoker,
        context=ContextKind.GUILD if in_guild else ContextKind.DIRECT_MESSAGE,
    )


class DiscordResponder(Responder):
    """Posts replies and reactions for one Discord message.

    Delivery failures are logged and swallowed; a failed post must not
    abort the rest of the dispatch.
    """

    def __init__(self, message: discord.Message):
        self.message = message

    async def send(self, reply: Reply) -> None:
        kwargs = {}
        if reply.text:
            kwargs["content"] = reply.text
        if reply.embed is not None:
            kwargs["embed"] = to_discord_embed(reply.embed)
        if not kwargs:
            return
        try:
            if reply.as_reply:
                await self.message.reply(**kwargs)
            else:
                await self.message.channel.send(**kwargs)
        except discord.HTTPException as e:
            logger.warning("send_failed", status=e.status, error=str(e))

    async def react(self, marker: str) -> None:
        try:
            await self.message.add_reaction(marker)
        except discord.HTTPException as e:
            logger.warning("reaction_failed", marker=marker, status=e.status, error=str(e))


class LeagueBot(discord.Client):
    """Discord client that feeds every message to the Dispatcher.

    Args:
        dispatcher: Fully wired dispatcher.
        keepalive: Optional keep-alive server started with the bot.
    """

    def __init__(self, dispatcher: Dispatcher, keepalive: Optional[KeepAliveServer] = None):
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(intents=intents)
        self.dispatcher = dispatcher
        self.keepalive = keepalive

    async def setup_hook(self) -> None:
        """Start loop-bound subsystems before connecting to the gateway."""
        if self.keepalive is not None:
            await self.keepalive.start()

    async def on_ready(self) -> None:
        self.dispatcher.bot_name = str(self.user)
        logger.info(
            "bot_connected",
            user=str(self.user),
            guilds=[guild.name for guild in self.guilds],
        )

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return
        try:
            await self.dispatcher.on_message(
                to_inbound(message), DiscordResponder(message)
            )
        except Exception as e:
            logger.exception(
                "message_handling_error",
                error=str(e),
                message_id=message.id,
            )

    async def close(self) -> None:
        """Stop subsystems, then disconnect."""
        self.dispatcher.cooldowns.cancel_timers()
        await self.dispatcher.backend.close()
        if self.keepalive is not None:
            await self.keepalive.stop()
        await super().close()
        logger.info("bot_stopped")
