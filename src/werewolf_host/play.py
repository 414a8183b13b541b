#!/usr/bin/env python
"""Run one room locally: a host plus stand-ins, narrated to the console.

Usage:
    werewolf-host-demo                               # 6 seats, 2 wolves, seer
    werewolf-host-demo --seats 8 --special seer witch guard hunter
    werewolf-host-demo --orphans 1 --seed 42 --speed 0.1
    werewolf-host-demo --config settings.yaml --nights 2
"""

import argparse
import asyncio
import random
import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from werewolf_host.config import PacingConfig, ServerSettings, load_settings
from werewolf_host.engine import Delivery, GameServer, Outbox
from werewolf_host.events import Audience
from werewolf_host.logs import configure_logging
from werewolf_host.models import Role

HOST = "host-connection"

_STYLE = {
    Audience.PARTICIPANT: "cyan",
    Audience.ROOM: "white",
    Audience.BROADCAST: "magenta",
}


def _scaled(settings: ServerSettings, speed: float) -> ServerSettings:
    pacing = settings.pacing
    return settings.model_copy(update={"pacing": PacingConfig(
        announce_delay=pacing.announce_delay * speed,
        inter_phase_delay=pacing.inter_phase_delay * speed,
        synthetic_delay=pacing.synthetic_delay * speed,
        reveal_delay=pacing.reveal_delay * speed,
    )})


def _render(console: Console, delivery: Delivery) -> None:
    payload = delivery.notification.model_dump(mode="json", exclude={"kind", "timestamp"})
    target = delivery.participant_id or delivery.room_id or "*"
    console.print(
        f"[{_STYLE[delivery.audience]}]{delivery.audience.value:<11}[/] "
        f"[bold]{delivery.kind:<16}[/] [dim]{target}[/] {escape(str(payload))}"
    )


def _act_for_host(server: GameServer, room_id: str, delivery: Delivery, rng: random.Random) -> None:
    """Answer the host's private prompts with random legal choices."""
    notification = delivery.notification
    if delivery.participant_id != HOST:
        return

    if notification.kind == "orphan_select_ui" and notification.candidates:
        server.select_protector(HOST, room_id, rng.choice(notification.candidates)["id"])
        return
    if notification.kind != "role_ui":
        return

    ids = [c["id"] for c in notification.candidates]
    role = notification.role
    if role == Role.WEREWOLF:
        server.werewolf_kill(HOST, room_id, rng.choice(ids))
    elif role == Role.GUARD:
        server.guard_protect(HOST, room_id, rng.choice(ids))
    elif role == Role.CUPID and len(ids) >= 2:
        first, second = rng.sample(ids, 2)
        server.cupid_link(HOST, room_id, first, second)
    elif role == Role.WITCH:
        if notification.kill_target and notification.kill_target != HOST and rng.random() < 0.5:
            server.witch_save(HOST, room_id)
        else:
            server.witch_skip(HOST, room_id)
    elif role == Role.SEER:
        if ids:
            server.seer_check(HOST, room_id, rng.choice(ids))
        server.acknowledge(HOST, room_id, Role.SEER)
    elif role == Role.HUNTER:
        server.acknowledge(HOST, room_id, Role.HUNTER)
    else:
        server.acknowledge(HOST, room_id, role)


async def run_demo(args: argparse.Namespace) -> int:
    console = Console()
    settings = _scaled(load_settings(args.config), args.speed)
    configure_logging(args.log_level or settings.log_level)

    queue: asyncio.Queue = asyncio.Queue()
    rng = random.Random(args.seed)
    server = GameServer(
        settings=settings,
        outbox=Outbox(on_delivery=queue.put_nowait),
        rng=random.Random(args.seed),
    )

    config = {
        "total_seats": args.seats,
        "num_werewolves": args.werewolves,
        "num_orphans": args.orphans,
        "special_roles": args.special,
    }
    result = server.configure_room(HOST, config)
    if not result:
        console.print(f"[red]{result.message}[/]")
        return 1
    room_id = server.create_room(HOST).data["room_id"]

    console.print(Panel(f"Room [bold]{room_id}[/]", title="werewolf-host"))
    server.join_room(HOST, room_id, "Host")
    seated = server.choose_seat(HOST, room_id, 1)
    console.print(f"Host was dealt [bold]{seated.data['role']}[/]")
    server.start_game(HOST, room_id)

    nights_left = args.nights
    idle_timeout = max(5.0, 60.0 * args.speed)
    while nights_left > 0:
        try:
            delivery = await asyncio.wait_for(queue.get(), timeout=idle_timeout)
        except asyncio.TimeoutError:
            console.print("[red]No progress; a human prompt is waiting.[/]")
            return 1
        _render(console, delivery)
        _act_for_host(server, room_id, delivery, rng)
        if delivery.kind == "day_started":
            console.print(Panel(server.check_last_night(HOST, room_id).message, title="Morning"))
            nights_left -= 1
            if nights_left > 0:
                server.next_night(HOST, room_id)

    server.disconnect(HOST)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a local Werewolves room with stand-ins")
    parser.add_argument("--seats", type=int, default=6)
    parser.add_argument("--werewolves", type=int, default=2)
    parser.add_argument("--orphans", type=int, default=0)
    parser.add_argument(
        "--special",
        nargs="*",
        default=["seer"],
        choices=[r.value for r in (Role.CUPID, Role.GUARD, Role.WITCH, Role.SEER, Role.HUNTER)],
    )
    parser.add_argument("--nights", type=int, default=1)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--speed", type=float, default=1.0, help="Multiplier for pacing delays")
    parser.add_argument("--config", default=None, help="YAML settings file")
    parser.add_argument("--log-level", default=None)
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    sys.exit(asyncio.run(run_demo(args)))


if __name__ == "__main__":
    main()
