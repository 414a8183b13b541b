"""Orphan tracker: which protector each orphan picked, and the chains they form."""

from typing import Iterable, Optional

from pydantic import BaseModel, Field

from werewolf_host.engine.room_registry import Room


class OrphanLink(BaseModel):
    """One orphan's choice, enriched with display data for both ends."""

    orphan_name: str
    orphan_seat: Optional[int] = None
    protector_id: str
    protector_name: str
    protector_seat: Optional[int] = None


class ChainNode(BaseModel):
    id: str
    name: str
    seat: Optional[int] = None


class OrphanChain(BaseModel):
    """A walk along protector links starting from one orphan."""

    nodes: list[ChainNode] = Field(default_factory=list)
    has_loop: bool = False
    text: str = ""


class OrphanTracker:
    """Per-room orphan -> protector mapping.

    Inspection only: nothing here affects night resolution.
    """

    def __init__(self) -> None:
        self._protectors: dict[str, dict[str, str]] = {}

    def initialize_room(self, room_id: str) -> None:
        self._protectors.setdefault(room_id, {})

    def set_protector(self, room_id: str, orphan_id: str, protector_id: str) -> None:
        self.initialize_room(room_id)
        self._protectors[room_id][orphan_id] = protector_id

    def get_protector(self, room_id: str, orphan_id: str) -> Optional[str]:
        return self._protectors.get(room_id, {}).get(orphan_id)

    def get_orphans(self, room_id: str) -> list[str]:
        return list(self._protectors.get(room_id, {}))

    def get_all_pairs(self, room_id: str) -> dict[str, str]:
        return dict(self._protectors.get(room_id, {}))

    def has_chosen(self, room_id: str, orphan_id: str) -> bool:
        return self.get_protector(room_id, orphan_id) is not None

    def all_chosen(self, room_id: str, orphan_ids: Iterable[str]) -> bool:
        """True when every given orphan has a protector (vacuously for none)."""
        return all(self.has_chosen(room_id, orphan_id) for orphan_id in orphan_ids)

    def remove_orphan(self, room_id: str, orphan_id: str) -> None:
        self._protectors.get(room_id, {}).pop(orphan_id, None)

    def clear_room(self, room_id: str) -> None:
        self._protectors.pop(room_id, None)

    def enrich(self, room: Room) -> dict[str, OrphanLink]:
        """Attach names and seats to every recorded choice in a room."""
        enriched: dict[str, OrphanLink] = {}
        for orphan_id, protector_id in self.get_all_pairs(room.room_id).items():
            orphan = room.participants.get(orphan_id)
            protector = room.participants.get(protector_id)
            if orphan is None or protector is None:
                continue
            enriched[orphan_id] = OrphanLink(
                orphan_name=orphan.name,
                orphan_seat=orphan.seat,
                protector_id=protector_id,
                protector_name=protector.name,
                protector_seat=protector.seat,
            )
        return enriched

    def build_chains(
        self, room_id: str, enriched: dict[str, OrphanLink]
    ) -> list[OrphanChain]:
        """Follow protector links from every orphan not yet visited.

        A node seen twice in the same walk marks the chain as a loop and
        ends it there. Otherwise the chain ends with the first protector who
        is not an orphan.

        Args:
            room_id: Room the links belong to (kept for symmetry with the
                     other tracker operations).
            enriched: orphan id -> OrphanLink, insertion order is walk order.

        Returns:
            Chains in discovery order, each with nodes and display text.
        """
        chains: list[OrphanChain] = []
        visited: set[str] = set()

        for orphan_id in enriched:
            if orphan_id in visited:
                continue

            chain = OrphanChain()
            path: set[str] = set()
            current: Optional[str] = orphan_id

            while current is not None and current in enriched:
                if current in path:
                    chain.has_loop = True
                    break
                path.add(current)
                visited.add(current)
                link = enriched[current]
                chain.nodes.append(
                    ChainNode(id=current, name=link.orphan_name, seat=link.orphan_seat)
                )
                current = link.protector_id

            if not chain.has_loop and current is not None and chain.nodes:
                last = enriched[chain.nodes[-1].id]
                chain.nodes.append(
                    ChainNode(id=last.protector_id, name=last.protector_name, seat=last.protector_seat)
                )

            chain.text = " → ".join(f"{node.name} (Seat {node.seat})" for node in chain.nodes)
            if chain.has_loop:
                chain.text += " → [LOOP]"

            if chain.nodes:
                chains.append(chain)

        return chains

    def describe(self, room: Room) -> list[OrphanChain]:
        """Chains for a room's current choices."""
        return self.build_chains(room.room_id, self.enrich(room))
