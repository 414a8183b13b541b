"""Smoke tests for the local demo runner."""

import pytest

from werewolf_host.play import build_parser, run_demo


class TestParser:

    def test_defaults(self) -> None:
        args = build_parser().parse_args([])
        assert args.seats == 6
        assert args.werewolves == 2
        assert args.special == ["seer"]
        assert args.nights == 1

    def test_unknown_special_role_rejected(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--special", "werewolf"])


class TestRunDemo:

    @pytest.mark.asyncio
    async def test_two_nights_with_standins(self, capsys: pytest.CaptureFixture) -> None:
        args = build_parser().parse_args([
            "--seats", "8",
            "--special", "seer", "witch", "guard", "hunter",
            "--orphans", "1",
            "--nights", "2",
            "--seed", "5",
            "--speed", "0",
            "--log-level", "WARNING",
        ])

        assert await run_demo(args) == 0
        out = capsys.readouterr().out
        assert "day_started" in out

    @pytest.mark.asyncio
    async def test_invalid_configuration_exits_nonzero(self) -> None:
        args = build_parser().parse_args(["--seats", "2", "--werewolves", "3", "--speed", "0"])
        assert await run_demo(args) == 1
