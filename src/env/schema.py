# CompanionConfig and section dataclasses
# src/env/schema.py

from dataclasses import dataclass, field
from typing import Optional

from llm_stack.config import ModelConfig


@dataclass
class GameConfig:
    """Where the game session and its protocol bridge live."""
    host: str = "localhost"
    port: int = 25565
    version: str = "1.20.1"
    bot_name: str = "Alex"
    target_player: Optional[str] = None   # lock onto one player; else first speaker/joiner
    bridge_host: str = "127.0.0.1"
    bridge_port: int = 25590
    request_timeout: float = 10.0


@dataclass
class DashboardConfig:
    """Observer surface (HTTP pull + WebSocket push)."""
    host: str = "127.0.0.1"
    port: int = 3000
    observer_queue_size: int = 256
    tui: bool = False


@dataclass
class BehaviorConfig:
    """Tuning constants for the arbitration loop and its handlers."""
    tick_interval_s: float = 0.8
    threat_radius: float = 7.0
    resource_radius: float = 6.0
    follow_threshold: float = 4.0        # beyond this, follow; at/below, stay put
    follow_distance: float = 2.0         # follow goal keeps this gap
    melee_range: float = 3.0
    chase_radius: float = 2.0
    mining_deadline_s: float = 8.0
    mining_reach: float = 4.0
    mining_poll_s: float = 0.2
    reaction_probability: float = 0.45
    chatter_interval_s: float = 50.0
    chatter_probability: float = 0.25
    reply_delay_min_s: float = 1.2
    reply_delay_max_s: float = 2.0
    hungry_below: float = 16.0
    reconnect_delay_s: float = 5.0


@dataclass
class LoggingConfig:
    level: str = "INFO"
    event_log: Optional[str] = None      # JSONL file for every broadcast message


@dataclass
class CompanionConfig:
    """Top-level resolved configuration."""
    game: GameConfig = field(default_factory=GameConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    behavior: BehaviorConfig = field(default_factory=BehaviorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
