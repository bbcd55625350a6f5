"""League commands.

Members: join, check, autoFill, update, info.
Administrators: createLeague, startLeague, endLeague.

Every command here is a single authenticated GET; league state and
scoring live entirely in the backend.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..backend import LeagueInfo, LeagueMember
from ..replies import Embed, Reply, format_points, response_fail
from .base import (
    BackendCommand,
    CommandContext,
    ContextRestriction,
    PrivilegeRequirement,
)

LEAGUE_USAGE = "<league_name>"
SCOREBOARD_ROWS = 10


def _format_time(timestamp_ms: Optional[int]) -> str:
    if not timestamp_ms:
        return "TBA"
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M UTC")


class LeagueCommand(BackendCommand):
    """A league command taking the league name as its first argument."""

    usage = LEAGUE_USAGE
    category = "League"
    min_args = 1
    context = ContextRestriction.GUILD_ONLY

    def params(self, ctx: CommandContext) -> Dict[str, str]:
        return {"league_name": ctx.args[0]}


class JoinCommand(LeagueCommand):
    name = "join"
    description = "Have the current user join a league"
    endpoint = "league/addMembers"

    def params(self, ctx: CommandContext) -> Dict[str, str]:
        return {"league_name": ctx.args[0], "members": ctx.invoker.backend_username}

    def render(self, ctx: CommandContext, data: Any) -> Reply:
        return Reply(text=(
            f"{ctx.invoker.mention} has joined {ctx.args[0]}. Enjoy problem solving!"
        ))


class CheckCommand(LeagueCommand):
    name = "check"
    description = "Check a user's performance during a league."
    context = ContextRestriction.ANY
    endpoint = "league/getMembers"

    def params(self, ctx: CommandContext) -> Dict[str, str]:
        return {"league_name": ctx.args[0], "usernames": ctx.invoker.backend_username}

    def render(self, ctx: CommandContext, data: Any) -> Reply:
        league_name = ctx.args[0]
        mention = ctx.invoker.mention
        if not data:
            return response_fail(mention, (
                f"You are not yet a member of this league, {mention}! "
                f"Try joining with `{ctx.prefix}join {league_name}`"
            ))

        member = LeagueMember.model_validate(data[0])
        streak_icon = "🔥" if member.streak_cnt > 2 else "♨️"
        embed = Embed(
            title=f"{ctx.invoker.username} ⚔️ {league_name}",
            colour=ctx.colour(7),
        )
        embed.add_field(
            "Member Info",
            f"🤝 Team: {member.team or 'Not assigned'}\n"
            f"🔗 Points: {format_points(member.points)}\n"
            f"{streak_icon}Streak: {member.streak_cnt}\n"
            f"🍉 Problems solved: {member.problems_solved}",
        )
        return Reply(embed=embed)


class AutoFillCommand(LeagueCommand):
    name = "autoFill"
    aliases = ("autofill",)
    description = "Assign the user to the weakest team in the league (by gain_rate)."
    endpoint = "league/autofillMember"

    def params(self, ctx: CommandContext) -> Dict[str, str]:
        return {"league_name": ctx.args[0], "username": ctx.invoker.backend_username}

    def render(self, ctx: CommandContext, data: Any) -> Reply:
        comment = data.get("comment", "") if isinstance(data, dict) else data
        return Reply(text=f"Operation success! Server responded with: {comment}")


class UpdateCommand(LeagueCommand):
    name = "update"
    description = "Update user's performance during a league"
    cooldown = 10
    endpoint = "league/updateMember"

    def params(self, ctx: CommandContext) -> Dict[str, str]:
        return {"league_name": ctx.args[0], "username": ctx.invoker.backend_username}

    def render(self, ctx: CommandContext, data: Any) -> Reply:
        league_name = ctx.args[0]
        return Reply(text=(
            f"Your performance in {league_name} is updated, {ctx.invoker.mention}. "
            f"You can now check it with `{ctx.prefix}check {league_name}`"
        ))


class InfoCommand(LeagueCommand):
    name = "info"
    description = "Retrieve info about the league"
    endpoint = "league/getInfo"

    def render(self, ctx: CommandContext, data: Any) -> Reply:
        league = LeagueInfo.model_validate(data)
        return Reply(embed=render_scoreboard(league, ctx.colour(1)))


def render_scoreboard(league: LeagueInfo, colour: Optional[int] = None) -> Embed:
    """Scoreboard embed: teams by total points, top members per team."""
    members: Dict[str, List[LeagueMember]] = {team: [] for team in league.teams}
    points: Dict[str, float] = {team: 0.0 for team in league.teams}
    in_teams = 0
    for member in league.members:
        if member.team in members:
            members[member.team].append(member)
            points[member.team] += member.points
            in_teams += 1

    embed = Embed(
        title=f"[League] {league.league_name}",
        colour=colour,
        description=(
            f"Start at: {_format_time(league.start_time)}\n"
            f"End at: {_format_time(league.end_time)}\n"
            f"Participants: {in_teams}/{len(league.members)} in teams\n"
            f"Points Total: {format_points(sum(points.values()))}"
        ),
    )

    ranked = sorted(league.teams, key=lambda team: points[team], reverse=True)
    for index, team in enumerate(ranked):
        roster = sorted(members[team], key=lambda m: m.points, reverse=True)
        lines = [
            f"🔺 Total Points: {format_points(points[team])}",
            "```" + "%8.8s\t%-20.20s\t%10.10s\t%4.4s" % ("Ranking", "Name", "Points", "Solved"),
        ]
        for rank, member in enumerate(roster[:SCOREBOARD_ROWS], start=1):
            lines.append("%8d\t%-20s\t%10.4g\t%4d" % (
                rank,
                member.username.replace("%2A", "#"),
                member.points,
                member.problems_solved,
            ))
        value = "\n".join(lines) + "```"

        badge = {0: " 👑", 1: " 👀"}.get(index, "")
        embed.add_field(f"{team}{badge}", value)
    return embed


class CreateLeagueCommand(LeagueCommand):
    name = "createLeague"
    description = "Create a league with the given ;-separated teams."
    usage = "<league_name> <team0;team1;team2;...>"
    min_args = 2
    privilege = PrivilegeRequirement.ADMINISTRATOR
    endpoint = "league/create"

    def params(self, ctx: CommandContext) -> Dict[str, str]:
        return {"league_name": ctx.args[0], "teams": ctx.args[1]}

    def render(self, ctx: CommandContext, data: Any) -> Reply:
        league_name = ctx.args[0]
        return Reply(text=(
            f"League {league_name} successfully created. Now anyone can join "
            f"{league_name} by `{ctx.prefix}join {league_name}`."
        ))


class StartLeagueCommand(LeagueCommand):
    name = "startLeague"
    description = (
        "Start a league. Any user who still have not been assigned to a "
        "team will be put into a team."
    )
    privilege = PrivilegeRequirement.ADMINISTRATOR
    endpoint = "league/start"

    def render(self, ctx: CommandContext, data: Any) -> Reply:
        league_name = ctx.args[0]
        return Reply(text=(
            f"{league_name} has started. Go solve some problems before it ends. "
            f"Remember to use `{ctx.prefix}update {league_name}` to update your progress."
        ))


class EndLeagueCommand(LeagueCommand):
    name = "endLeague"
    description = (
        "End a league. Will update all of the user's performance, after "
        "which everything is recorded and finalized."
    )
    privilege = PrivilegeRequirement.ADMINISTRATOR
    cooldown = 60 * 60
    endpoint = "league/end"

    def render(self, ctx: CommandContext, data: Any) -> Reply:
        league_name = ctx.args[0]
        return Reply(text=(
            f"{league_name} has ended. Use `{ctx.prefix}info {league_name}` "
            "to see the final scoreboard."
        ))
