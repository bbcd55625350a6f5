"""General commands: help, quickstart.

Neither touches the backend; help reads the registry it is handed
through the command context.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Dict, List

from ..replies import Embed, Reply, bool_to_emote, response_fail
from .base import (
    Command,
    CommandContext,
    CommandDescriptor,
    CommandResult,
    ContextRestriction,
    Ok,
    PrivilegeRequirement,
)

SEPARATOR = "=" * 63


class HelpCommand(Command):
    name = "help"
    aliases = ("commands",)
    description = "List all of the commands, or info about a specific command"
    usage = "[commandName]"

    async def execute(self, ctx: CommandContext) -> CommandResult:
        if not ctx.args:
            return Ok([Reply(embed=self._overview(ctx))])

        command = ctx.registry.resolve(ctx.args[0])
        if command is None:
            return Ok([response_fail(ctx.invoker.mention, f"Command {ctx.args[0]} not found")])
        return Ok([Reply(embed=self._detail(ctx, ctx.args[0], command.descriptor))])

    def _overview(self, ctx: CommandContext) -> Embed:
        embed = Embed(
            title=f"How to use {ctx.bot_name}",
            colour=ctx.colour(6),
            description=(
                "Below are a list of useful commands. If you want to find out "
                "what the commands do specifically, use "
                f"`{ctx.prefix}help <commandName>`."
            ),
        )
        by_category: Dict[str, List[CommandDescriptor]] = OrderedDict()
        for command in ctx.registry:
            descriptor = command.descriptor
            by_category.setdefault(descriptor.category or "Misc", []).append(descriptor)

        for category, descriptors in by_category.items():
            lines = "".join(
                "\t* %-15.15s\t%.20s\n" % (ctx.prefix + d.name, d.description)
                for d in descriptors
            )
            embed.add_field(f"{category} commands", f"```markdown\n{lines}\n```")
        return embed

    def _detail(self, ctx: CommandContext, token: str, descriptor: CommandDescriptor) -> Embed:
        restrictions = (
            f"Use in DMs: {bool_to_emote(descriptor.context is not ContextRestriction.GUILD_ONLY)} "
            f"Use by non-admin: {bool_to_emote(descriptor.privilege is PrivilegeRequirement.NONE)} "
            f"Use in Guilds: {bool_to_emote(descriptor.context is not ContextRestriction.DM_ONLY)}"
        )
        embed = Embed(
            title=f"How to use {token}",
            description=descriptor.description,
            colour=ctx.colour(4),
            footer=(
                "Note that all operation has an implicit cooldown of a few "
                "seconds, to prevent excessive spamming."
            ),
        )
        embed.add_field("Name", descriptor.name, inline=True)
        embed.add_field("Aliases", ", ".join(descriptor.aliases) or "None", inline=True)
        embed.add_field("Category", descriptor.category or "Misc", inline=True)
        embed.add_field("Cooldown", f"{descriptor.cooldown:g}s", inline=True)
        embed.add_field(
            "Parameters",
            f"```markdown\n{ctx.prefix}{descriptor.name} {descriptor.usage}\n```",
        )
        embed.add_field("Extra Restrictions:", restrictions, inline=True)
        return embed


class QuickstartCommand(Command):
    name = "quickstart"
    aliases = ("guide",)
    description = (
        "A quickstart guide that details how this bot works, and what "
        "commands to use to follow. Add the argument specific if you want "
        "a more specific guide."
    )
    usage = "[specific]"
    context = ContextRestriction.DM_ONLY

    async def execute(self, ctx: CommandContext) -> CommandResult:
        p = ctx.prefix
        bot = f"***{ctx.bot_name}***"
        sections = [
            f"**INTRODUCTION**\n"
            f"This is a guide on how {bot} works. {bot} helps organize various "
            f"events (called leagues) where users compete by solving problems "
            f"to earn points for their team.\n"
            f"Whenever {bot} encounters a message starting with {p}, it will "
            f"acknowledge it by reacting ⚙️. If the command finished executing, "
            f"it will react with 👌.\n{SEPARATOR}\n",

            f"**HELPFUL COMMANDS**\n"
            f"There are two commands that can help you if you are new:\n"
            f"```\n{p}quickstart\n{p}help\n```\n"
            f"The first will relay this message back to you, and the latter will "
            f"give you a list of commands at your disposal, as well as specific "
            f"information on each of them. ***A lot of these commands can be used "
            f"in your DMs, should you not want something publicly shared***. For "
            f"instance, `{p}self` exposes your cf rating; use it in DMs if you'd "
            f"rather keep that private.\n{SEPARATOR}\n",

            f"**JOIN AND LINK YOUR ACCOUNT**\n"
            f"First, so that {bot} recognizes you in all servers, use\n"
            f"```{p}register```\n"
            f"Then link your codeforces account with `{p}linkCF <cf_handle>`. "
            f"For example, someone with the handle m1sch3f would do:\n"
            f"```{p}linkCF m1sch3f```\n"
            f"After this, you are all set! You can see what {bot} records about "
            f"you using `{p}self`, and start joining leagues.\n{SEPARATOR}\n",

            f"**LEAGUES**\n"
            f"Leagues are mini-events where the server is divided into teams and "
            f"the team that accumulates the most points before the end wins.\n"
            f"Join a league with `{p}join <league_name>`:\n"
            f"```{p}join spring2021League```\n"
            f"If the league has already started, `{p}autoFill <league_name>` "
            f"assigns you to a team.\n"
            f"Use `{p}update <league_name>` to count your recent submissions, "
            f"`{p}check <league_name>` to see your own performance and "
            f"`{p}info <league_name>` to see the scoreboard.\n{SEPARATOR}\n",
        ]

        if ctx.args and ctx.args[0] == "specific":
            sections.append(
                f"**ADMIN-RESTRICTED COMMANDS**\n"
                f"Server admins can manage leagues. These commands are only "
                f"available in servers. Create a league with "
                f"`{p}createLeague <league_name> <teams(; separated)>`, e.g.\n"
                f"```\n{p}createLeague metamorph whoosh;temoc;pagefans\n```\n"
                f"Start it with `{p}startLeague <league_name>` and end it with "
                f"`{p}endLeague <league_name>`.\n{SEPARATOR}\n"
            )

        return Ok([Reply(text=section) for section in sections])
