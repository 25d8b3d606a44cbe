# src/agent/catalog.py
"""
Static Minecraft knowledge used by the behavior handlers.

Priority lists are ordered best-first; selection is always "first entry the
world can satisfy", never a score.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Tuple

HOSTILE_MOBS: FrozenSet[str] = frozenset({
    "zombie", "skeleton", "creeper", "spider", "enderman", "witch",
    "pillager", "vindicator", "phantom", "drowned", "husk", "stray",
    "cave_spider", "blaze", "ghast", "slime", "magma_cube", "silverfish",
})

# Rarest first.
ORE_PRIORITY: Tuple[str, ...] = (
    "ancient_debris",
    "diamond_ore", "deepslate_diamond_ore",
    "emerald_ore", "deepslate_emerald_ore",
    "gold_ore", "deepslate_gold_ore",
    "iron_ore", "deepslate_iron_ore",
    "lapis_ore", "deepslate_lapis_ore",
    "coal_ore", "deepslate_coal_ore",
    "copper_ore", "deepslate_copper_ore",
)

ORE_REACTIONS: Dict[str, str] = {
    "ancient_debris": "ancient debris!! we're getting netherite",
    "diamond_ore": "DIAMONDS!! let's go!!",
    "deepslate_diamond_ore": "DIAMONDS!! let's go!!",
    "emerald_ore": "emerald! nice find",
    "gold_ore": "gold, grabbing it",
    "deepslate_gold_ore": "gold, grabbing it",
}

WEAPON_PRIORITY: Tuple[str, ...] = (
    "netherite_sword", "diamond_sword", "iron_sword", "stone_sword", "golden_sword", "wooden_sword",
    "netherite_axe", "diamond_axe", "iron_axe",
)

PICKAXE_PRIORITY: Tuple[str, ...] = (
    "netherite_pickaxe", "diamond_pickaxe", "iron_pickaxe",
    "stone_pickaxe", "golden_pickaxe", "wooden_pickaxe",
)

FOOD_PRIORITY: Tuple[str, ...] = (
    "cooked_beef", "cooked_porkchop", "cooked_chicken", "cooked_mutton",
    "cooked_salmon", "cooked_cod", "bread", "apple", "carrot", "golden_carrot",
)
