# game client interfaces
# src/bot_core/net/client.py
"""
Client abstraction for bot_core.

Defines the two interfaces the companion needs from a live game session:

- GameWorld: entities, inventory, block lookups, self vitals, and the
  action commands (equip / attack / dig / consume / chat).
- MovementController: goal-directed movement (follow / go near / go to
  block / stop). Goals are fire-and-forget; arrival is observed by polling
  the world position.

plus a factory for constructing the concrete client from the companion
configuration.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Protocol

from ..snapshot import Block, Entity, GameEvent, Item, Vec3

# Inbound notifications are pushed into a sink owned by the runtime.
EventSink = Callable[[GameEvent], None]


class GameWorld(Protocol):
    """
    Abstract interface for the world-facing half of a game client.

    Implementations:
    - IpcGameClient (JSON-lines bridge to a protocol sidecar)
    - FakeWorld (in-memory, tests)
    """

    username: str

    async def connect(self, on_event: EventSink) -> None:
        """Open the session; notifications are delivered to `on_event`."""
        ...

    async def disconnect(self) -> None:
        """Cleanly close the session."""
        ...

    # -- snapshot reads -------------------------------------------------

    @property
    def health(self) -> float:
        ...

    @property
    def food(self) -> float:
        ...

    def self_position(self) -> Optional[Vec3]:
        """Position of the bot itself, None before spawn."""
        ...

    def entities(self) -> List[Entity]:
        """All currently visible entities (mobs and players)."""
        ...

    def entity(self, entity_id: int) -> Optional[Entity]:
        """Fresh view of one entity, None if it is gone."""
        ...

    def player(self, username: str) -> Optional[Entity]:
        """The visible entity of a player, None if out of view or offline."""
        ...

    def inventory(self) -> List[Item]:
        ...

    async def block_at(self, position: Vec3) -> Optional[Block]:
        ...

    async def find_block(
        self, name: str, center: Vec3, max_distance: float
    ) -> Optional[Block]:
        """Nearest block named `name` within `max_distance` of `center`."""
        ...

    def can_dig(self, block: Block) -> bool:
        ...

    # -- action commands ------------------------------------------------

    async def equip(self, item: Item, destination: str = "hand") -> None:
        ...

    async def attack(self, entity: Entity) -> None:
        ...

    async def dig(self, block: Block) -> None:
        ...

    async def consume(self) -> None:
        ...

    async def chat(self, text: str) -> None:
        ...


class MovementController(Protocol):
    """Goal-directed movement. Every call replaces the current goal."""

    def follow(self, entity: Entity, distance: float) -> None:
        ...

    def go_near(self, point: Vec3, radius: float) -> None:
        ...

    def go_to_block(self, point: Vec3) -> None:
        ...

    def stop(self) -> None:
        ...


def create_game_client(config: Any) -> Any:
    """
    Construct the concrete game client for the given CompanionConfig.

    The returned object implements both GameWorld and MovementController.
    """
    # Lazy import to avoid cycles.
    from .ipc import IpcGameClient

    game = config.game
    return IpcGameClient(
        host=game.bridge_host,
        port=game.bridge_port,
        username=game.bot_name,
        request_timeout=game.request_timeout,
        server={"host": game.host, "port": game.port, "version": game.version},
    )
