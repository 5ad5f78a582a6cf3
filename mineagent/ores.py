"""Ore guide: generation depths, tool tiers, and block matching.

Vanilla 1.21 overworld ores, nether resources, and the common modded ores
that share the ``<name>_ore`` / ``deepslate_<name>_ore`` naming scheme.
Y-levels are overworld coordinates unless the entry is flagged ``nether``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

TIER_NAMES = ("wood", "stone", "iron", "diamond", "netherite")


@dataclass(frozen=True)
class Ore:
    """One mineable resource."""
    name: str
    min_y: int
    max_y: int
    best_y: int
    min_tier: int
    tip: str
    drop: str
    blocks: Tuple[str, ...] = field(default=())
    modded: bool = False
    nether: bool = False

    @property
    def key(self) -> str:
        return self.name.replace(" ", "_")

    @property
    def tier_name(self) -> str:
        if 0 <= self.min_tier < len(TIER_NAMES):
            return TIER_NAMES[self.min_tier]
        return "unknown"

    def matches(self, block: str) -> bool:
        return block in self.blocks


def _overworld(name, min_y, max_y, best_y, tier, tip, drop=None, modded=False) -> Ore:
    key = name.replace(" ", "_")
    return Ore(
        name=name,
        min_y=min_y,
        max_y=max_y,
        best_y=best_y,
        min_tier=tier,
        tip=tip,
        drop=drop or f"raw_{key}",
        blocks=(f"{key}_ore", f"deepslate_{key}_ore"),
        modded=modded,
    )


def _nether(name, block, min_y, max_y, best_y, tier, tip, drop) -> Ore:
    return Ore(
        name=name,
        min_y=min_y,
        max_y=max_y,
        best_y=best_y,
        min_tier=tier,
        tip=tip,
        drop=drop,
        blocks=(block,),
        nether=True,
    )


ORES: Tuple[Ore, ...] = (
    # ── Vanilla overworld ─────────────────────────────────────
    _overworld("coal", 0, 320, 96, 0,
               "Abundant above Y=0. Best around Y=96. Any pickaxe works.", drop="coal"),
    _overworld("copper", -16, 112, 48, 0,
               "Most common around Y=48. Any pickaxe works."),
    _overworld("iron", -64, 320, 16, 1,
               "Two peaks: Y=16 and Y=256 (mountains). Best at Y=16. Stone pickaxe+."),
    _overworld("lapis", -64, 64, 0, 1,
               "Best at Y=0 (triangle distribution). Stone pickaxe+.", drop="lapis_lazuli"),
    _overworld("gold", -64, 32, -16, 2,
               "Best at Y=-16. Iron pickaxe+. Also found in Nether."),
    _overworld("redstone", -64, 16, -59, 2,
               "Most common at Y=-59 (bottom of world). Iron pickaxe+.", drop="redstone"),
    _overworld("diamond", -64, 16, -59, 2,
               "Most common at Y=-59. Reduced near air exposure. Iron pickaxe+.", drop="diamond"),
    _overworld("emerald", -16, 320, 232, 2,
               "Mountain biomes only. Best at high Y in mountains. Iron pickaxe+.", drop="emerald"),

    # ── Nether ────────────────────────────────────────────────
    _nether("nether quartz", "nether_quartz_ore", 10, 117, 15, 0,
            "Found throughout the Nether. Any pickaxe works.", "quartz"),
    _nether("nether gold", "nether_gold_ore", 10, 117, 15, 0,
            "Found in Nether. Drops gold nuggets. Any pickaxe works.", "gold_nugget"),
    _nether("ancient debris", "ancient_debris", 8, 119, 15, 3,
            "Extremely rare in Nether around Y=15. Diamond pickaxe required. Blast-resistant.",
            "ancient_debris"),

    # ── Modded ────────────────────────────────────────────────
    _overworld("osmium", -64, 60, 16, 1,
               "Mekanism. Similar to iron distribution. Stone pickaxe+.", modded=True),
    _overworld("tin", -20, 90, 20, 1,
               "Mekanism/Thermal. Common around Y=20. Stone pickaxe+.", modded=True),
    _overworld("lead", -64, 40, 8, 1,
               "Mekanism/Thermal/IE. Best around Y=8. Stone pickaxe+.", modded=True),
    _overworld("uranium", -64, 20, -20, 2,
               "Mekanism. Deep underground near Y=-20. Iron pickaxe+.", modded=True),
    _overworld("fluorite", -64, 16, -10, 2,
               "Mekanism. Deep underground. Iron pickaxe+.", drop="fluorite", modded=True),
    _overworld("silver", -64, 40, -10, 2,
               "Thermal/IE. Deep underground. Iron pickaxe+.", modded=True),
    _overworld("nickel", -64, 40, -10, 2,
               "Thermal/IE. Deep underground. Iron pickaxe+.", modded=True),
    _overworld("sulfur", -64, 20, -20, 1,
               "Thermal. Deep underground near lava level. Stone pickaxe+.", drop="sulfur", modded=True),
    _overworld("apatite", 48, 200, 80, 0,
               "Thermal/Forestry. Upper levels, similar to coal. Any pickaxe.", drop="apatite", modded=True),
    _overworld("zinc", -64, 70, 20, 1,
               "Create. Common around Y=20. Stone pickaxe+.", modded=True),
    _overworld("certus quartz", -64, 40, 16, 2,
               "AE2. Found underground. Iron pickaxe+.", drop="certus_quartz_crystal", modded=True),
    _overworld("aluminum", -64, 72, 20, 1,
               "Immersive Engineering. Common around Y=20. Stone pickaxe+.", modded=True),
    _overworld("ruby", -64, 30, -20, 2,
               "Various mods (Gems). Deep underground. Iron pickaxe+.", drop="ruby", modded=True),
    _overworld("sapphire", -64, 30, -20, 2,
               "Various mods (Gems). Deep underground. Iron pickaxe+.", drop="sapphire", modded=True),
    _overworld("peridot", -64, 30, -10, 2,
               "Various mods (Gems). Deep underground. Iron pickaxe+.", drop="peridot", modded=True),
    _overworld("iridium", -64, 10, -40, 3,
               "Various mods. Very deep, very rare. Diamond pickaxe required.", modded=True),
    _overworld("platinum", -64, 16, -40, 2,
               "Various mods. Very deep underground. Iron pickaxe+.", modded=True),
)

_BY_BLOCK: Dict[str, Ore] = {block: ore for ore in ORES for block in ore.blocks}

_ALIASES: Dict[str, str] = {
    "netherite": "ancient debris",
    "debris": "ancient debris",
    "ancient": "ancient debris",
    "quartz": "nether quartz",
    "certus": "certus quartz",
    "ae2 quartz": "certus quartz",
    "bauxite": "aluminum",
    "aluminium": "aluminum",
    "lapis lazuli": "lapis",
    "nether gold nugget": "nether gold",
    "piglins": "nether gold",
}

_STRIP_TOKENS = ("ore", "raw", "deepslate", "ingot", "dust", "gem", "crystal")


def _normalize(query: str) -> str:
    words = query.strip().lower().replace("_", " ").split()
    return " ".join(w for w in words if w not in _STRIP_TOKENS)


def find_by_name(query: Optional[str]) -> Optional[Ore]:
    """Find an ore by loose name: ``iron``, ``raw_iron``, ``deepslate_iron_ore``...

    Tries an exact match, then a substring match either way, then aliases.
    """
    if not query or not query.strip():
        return None
    normalized = _normalize(query)
    if not normalized:
        return None
    for ore in ORES:
        if ore.name == normalized:
            return ore
    for ore in ORES:
        if ore.name in normalized or normalized in ore.name:
            return ore
    alias = _ALIASES.get(normalized)
    if alias:
        return next(o for o in ORES if o.name == alias)
    return None


def identify_ore(block: str) -> Optional[Ore]:
    return _BY_BLOCK.get(block)


def is_ore(block: str) -> bool:
    return block in _BY_BLOCK


def all_ore_names() -> List[str]:
    return [ore.name for ore in ORES]


def vanilla_ores() -> List[Ore]:
    return [ore for ore in ORES if not ore.modded]


def overworld_ores() -> List[Ore]:
    return [ore for ore in ORES if not ore.nether]


def _describe(ore: Ore) -> str:
    nether = " [NETHER]" if ore.nether else ""
    return (
        f"  {ore.name}: Y={ore.min_y} to {ore.max_y}, best Y={ore.best_y}, "
        f"needs {ore.tier_name} pickaxe+{nether}. {ore.tip}"
    )


def mining_guide() -> str:
    """Multi-line plain-text guide grouped by vanilla, nether, and modded."""
    lines = ["Ore Mining Guide (Y-levels, optimal depths, tool requirements):"]
    lines.append("--- Vanilla Ores ---")
    lines.extend(_describe(o) for o in ORES if not o.modded and not o.nether)
    lines.append("--- Nether Resources ---")
    lines.extend(_describe(o) for o in ORES if o.nether)
    lines.append("--- Modded Ores ---")
    lines.extend(_describe(o) for o in ORES if o.modded and not o.nether)
    return "\n".join(lines)
