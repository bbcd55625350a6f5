"""User commands: register, linkCF, self."""

from __future__ import annotations

from typing import Any, Dict

from ..backend import UserInfo
from ..replies import Embed, Reply, format_points
from .base import BackendCommand, CommandContext, ContextRestriction


class RegisterCommand(BackendCommand):
    name = "register"
    description = (
        "Register the discord user as a participant. After this, they'll be "
        "able to link their codeforces, and start participating in leagues."
    )
    category = "User"
    context = ContextRestriction.GUILD_ONLY
    endpoint = "user/create"

    def params(self, ctx: CommandContext) -> Dict[str, str]:
        return {"username": ctx.invoker.backend_username}

    def render(self, ctx: CommandContext, data: Any) -> Reply:
        return Reply(text=(
            "Registered! You are in. Try to link your codeforces account "
            f"using `{ctx.prefix}linkCF [cf_handle]`!"
        ))


class LinkCFCommand(BackendCommand):
    name = "linkCF"
    description = "Link user with a handle on codeforces.com."
    usage = "<cf_handle>"
    category = "User"
    min_args = 1
    endpoint = "user/linkCF"

    def params(self, ctx: CommandContext) -> Dict[str, str]:
        return {"username": ctx.invoker.backend_username, "handle": ctx.args[0]}

    def render(self, ctx: CommandContext, data: Any) -> Reply:
        return Reply(text=(
            "Your codeforces account is linked! Feel free to check your info "
            f"using `{ctx.prefix}self` either in a server or in our dms."
        ))


class SelfCommand(BackendCommand):
    name = "self"
    aliases = ("me",)
    description = "Get info of the current user"
    category = "User"
    endpoint = "user/getInfo"

    def params(self, ctx: CommandContext) -> Dict[str, str]:
        return {"username": ctx.invoker.backend_username}

    def render(self, ctx: CommandContext, data: Any) -> Reply:
        info = UserInfo.model_validate(data)
        if info.pfp:
            thumbnail = f"http:{info.pfp}"
        else:
            thumbnail = f"{ctx.backend.api_url}/img/defaultPFP.png"

        embed = Embed(title=info.username, colour=ctx.colour(2), thumbnail=thumbnail)
        embed.add_field(
            "General Info",
            f"Points accumulated: {format_points(info.points_accumulated)}\n"
            f"Problems solved: {info.solved}\n"
            f"Gain rate: {format_points(info.gain_rate)}\n"
            f"Leagues participated in: {len(info.league_participation)}",
        )
        if info.cf_handle and info.cf_rating:
            embed.add_field(
                "Codeforces Info",
                f"handle: {info.cf_handle}\nmaxRating: {info.rating}",
            )
        return Reply(embed=embed)
