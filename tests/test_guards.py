"""Tests for the dispatch guard chain."""

from unittest.mock import MagicMock

import pytest

from leaguebot.commands.base import (
    CommandDescriptor,
    ContextKind,
    ContextRestriction,
    Invocation,
    Invoker,
    PrivilegeRequirement,
)
from leaguebot.cooldowns import CooldownTracker
from leaguebot.exceptions import GuardRejection
from leaguebot.guards import (
    GuardChain,
    check_context,
    check_privilege,
    make_arity_check,
    make_cooldown_check,
)


def _invocation(args=(), context=ContextKind.GUILD, is_admin=False):
    invoker = Invoker(id="42", username="alice", discriminator="1234",
                      mention="<@42>", is_admin=is_admin)
    return Invocation(invoker=invoker, context=context, token="join", args=tuple(args))


def _descriptor(**kwargs):
    defaults = dict(name="join", min_args=1, usage="<league_name>")
    defaults.update(kwargs)
    return CommandDescriptor(**defaults)


class TestContextGuard:

    def test_guild_only_rejected_in_dm(self):
        with pytest.raises(GuardRejection, match="inside DMs") as exc_info:
            check_context(
                _invocation(context=ContextKind.DIRECT_MESSAGE),
                _descriptor(context=ContextRestriction.GUILD_ONLY),
                0.0,
            )
        assert exc_info.value.guard == "context"
        assert exc_info.value.as_reply is True

    def test_dm_only_rejected_in_guild(self):
        with pytest.raises(GuardRejection, match="Slide into my DM"):
            check_context(
                _invocation(context=ContextKind.GUILD),
                _descriptor(context=ContextRestriction.DM_ONLY),
                0.0,
            )

    @pytest.mark.parametrize("context", list(ContextKind))
    def test_any_passes_everywhere(self, context):
        check_context(_invocation(context=context), _descriptor(), 0.0)


class TestArityGuard:

    def test_too_few_args_rejected_with_usage(self):
        check = make_arity_check("!")
        with pytest.raises(GuardRejection) as exc_info:
            check(_invocation(args=()), _descriptor(), 0.0)
        message = exc_info.value.message
        assert "<@42>" in message
        assert "`!join <league_name>`" in message

    def test_usage_omitted_when_missing(self):
        check = make_arity_check("!")
        with pytest.raises(GuardRejection) as exc_info:
            check(_invocation(), _descriptor(usage=""), 0.0)
        assert "proper usage" not in exc_info.value.message

    def test_enough_args_pass(self):
        check = make_arity_check("!")
        check(_invocation(args=("a", "b")), _descriptor(min_args=2), 0.0)


class TestPrivilegeGuard:

    def test_admin_required_rejects_member(self):
        with pytest.raises(GuardRejection, match="administrative permission"):
            check_privilege(
                _invocation(is_admin=False),
                _descriptor(privilege=PrivilegeRequirement.ADMINISTRATOR),
                0.0,
            )

    def test_admin_passes(self):
        check_privilege(
            _invocation(is_admin=True),
            _descriptor(privilege=PrivilegeRequirement.ADMINISTRATOR),
            0.0,
        )


class TestCooldownGuard:

    def test_live_entry_rejects_with_remaining(self):
        tracker = CooldownTracker()
        tracker.record("join", "42", now=100.0, duration=3)
        check = make_cooldown_check(tracker)
        with pytest.raises(GuardRejection) as exc_info:
            check(_invocation(args=("x",)), _descriptor(cooldown=3), 101.25)
        assert exc_info.value.message == (
            "Please wait 1.8 more second(s) before reusing the `join` command."
        )

    def test_guard_does_not_record(self):
        tracker = CooldownTracker()
        check = make_cooldown_check(tracker)
        check(_invocation(args=("x",)), _descriptor(), 0.0)
        assert len(tracker) == 0


class TestGuardChain:

    def test_default_chain_order(self):
        """Context runs before arity: a DM with no args is a context rejection."""
        chain = GuardChain.default("!", CooldownTracker())
        with pytest.raises(GuardRejection) as exc_info:
            chain.evaluate(
                _invocation(args=(), context=ContextKind.DIRECT_MESSAGE),
                _descriptor(context=ContextRestriction.GUILD_ONLY),
                0.0,
            )
        assert exc_info.value.guard == "context"

    def test_short_circuits_on_first_failure(self):
        first = MagicMock(side_effect=GuardRejection("no", guard="first"))
        second = MagicMock()
        chain = GuardChain([first, second])
        with pytest.raises(GuardRejection):
            chain.evaluate(_invocation(), _descriptor(), 0.0)
        second.assert_not_called()

    def test_all_guards_run_on_pass(self):
        guards = [MagicMock(return_value=None) for _ in range(4)]
        chain = GuardChain(guards)
        chain.evaluate(_invocation(), _descriptor(), 5.0)
        for g in guards:
            g.assert_called_once()
        assert len(chain) == 4

    def test_privilege_checked_before_cooldown(self):
        tracker = CooldownTracker()
        tracker.record("join", "42", now=0.0, duration=100)
        chain = GuardChain.default("!", tracker)
        with pytest.raises(GuardRejection) as exc_info:
            chain.evaluate(
                _invocation(args=("x",)),
                _descriptor(privilege=PrivilegeRequirement.ADMINISTRATOR),
                1.0,
            )
        assert exc_info.value.guard == "privilege"
