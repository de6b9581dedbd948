"""
Data types mirroring the YAML config schema.

These dataclasses are populated by loader.py from YAML files.
"""

from dataclasses import dataclass, asdict
from typing import Optional

from .constants import (
    DEFAULT_GENE_LENGTH,
    DEFAULT_ANT_ENERGY,
    FOOD_ENERGY,
    SPLIT_ENERGY,
    ACTION_ENERGY_COST,
    ATTACK_DAMAGE_DIVISOR,
    FOOD_GROWTH_CHANCE,
    SPARE_CELL,
)


@dataclass
class GridConfig:
    """Grid geometry and lifecycle tuning"""
    width: int = 50
    height: int = 50
    seed: Optional[int] = None  # None = fresh entropy every run
    gene_length: int = DEFAULT_GENE_LENGTH
    initial_energy: int = DEFAULT_ANT_ENERGY
    food_energy: int = FOOD_ENERGY
    split_energy: int = SPLIT_ENERGY
    action_cost: int = ACTION_ENERGY_COST
    attack_divisor: int = ATTACK_DAMAGE_DIVISOR
    food_growth_chance: float = FOOD_GROWTH_CHANCE
    spare_cell: bool = SPARE_CELL

    def __post_init__(self):
        """Reject geometry and tuning the tick loop cannot honor"""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Grid must be at least 1x1, got {self.width}x{self.height}")
        if self.gene_length <= 0:
            raise ValueError(f"gene_length must be positive, got {self.gene_length}")
        if self.attack_divisor <= 0:
            raise ValueError(f"attack_divisor must be positive, got {self.attack_divisor}")
        if not 0.0 <= self.food_growth_chance <= 1.0:
            raise ValueError(f"food_growth_chance must be in [0, 1], got {self.food_growth_chance}")

    @property
    def cell_count(self) -> int:
        return self.width * self.height + (1 if self.spare_cell else 0)

    def to_dict(self) -> dict:
        return asdict(self)
