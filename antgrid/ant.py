"""
Ant runtime representation.

An ant owns a gene and interprets one instruction per tick. It never
resolves the legality of its own actions: Move, Eat and Attack are
returned to the grid as requests.
"""

import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .constants import DEFAULT_ANT_ENERGY, DEFAULT_GENE_LENGTH, FOOD_ENERGY
from .gene import Gene, Opcode
from .team import Team, random_team


class Direction(Enum):
    EAST = 'east'
    NORTH = 'north'
    WEST = 'west'
    SOUTH = 'south'

    def turn_left(self) -> 'Direction':
        return _COMPASS[(_COMPASS.index(self) + 1) % 4]

    def turn_right(self) -> 'Direction':
        return _COMPASS[(_COMPASS.index(self) - 1) % 4]


# Counter-clockwise order: a left turn steps forward through the table
_COMPASS = (Direction.EAST, Direction.NORTH, Direction.WEST, Direction.SOUTH)


class Action(Enum):
    """Requests an ant hands back to the grid."""
    MOVE = 'move'
    EAT = 'eat'
    ATTACK = 'attack'


_ACTION_OF_OPCODE = {
    Opcode.MOVE: Action.MOVE,
    Opcode.EAT: Action.EAT,
    Opcode.ATTACK: Action.ATTACK,
}


@dataclass
class AntSummary:
    """Read-only occupant view for renderers."""
    ant_id: int
    team: Team
    energy: int
    age: int


@dataclass
class Ant:
    """
    Runtime ant on the grid.

    Attributes:
        ant_id: Stable arena handle, survives position swaps
        team: Affiliation (gates Attack damage)
        gene: Exclusively owned instruction tape
        energy: Lifecycle currency, may go transiently negative
        direction: Facing direction
        sensor: Set after a successful move, True if a neighbor was empty
        age: Ticks executed since birth
    """
    ant_id: int
    team: Team
    gene: Gene
    energy: int = DEFAULT_ANT_ENERGY
    direction: Direction = Direction.NORTH
    sensor: bool = False
    age: int = 0
    generation: int = 0

    @classmethod
    def random(
        cls,
        ant_id: int,
        rng: np.random.Generator,
        gene_length: int = DEFAULT_GENE_LENGTH,
        energy: int = DEFAULT_ANT_ENERGY
    ) -> 'Ant':
        """Ant with a random team and random gene, facing North."""
        return cls(
            ant_id=ant_id,
            team=random_team(rng),
            gene=Gene.random(rng, gene_length),
            energy=energy
        )

    def execute(self) -> Optional[Action]:
        """
        Run one gene cycle.

        Ages the ant, consumes exactly one instruction and interprets it.
        Turns, jumps and noop are handled here and return None.

        Returns:
            Action request for Move/Eat/Attack, None otherwise
        """
        self.age += 1
        instruction = self.gene.cycle()
        opcode = instruction.opcode

        if opcode is Opcode.JUMP_IF_SENSOR_FALSE:
            if not self.sensor:
                self.gene.jump(instruction.target)
            return None
        if opcode is Opcode.JUMP_IF_SENSOR_TRUE:
            if self.sensor:
                self.gene.jump(instruction.target)
            return None
        if opcode is Opcode.TURN_LEFT:
            self.direction = self.direction.turn_left()
            return None
        if opcode is Opcode.TURN_RIGHT:
            self.direction = self.direction.turn_right()
            return None

        # Move / Eat / Attack, or None for noop
        return _ACTION_OF_OPCODE.get(opcode)

    def consume_energy(self, amount: int):
        """Unclamped: energy may drop below zero."""
        self.energy -= amount

    def increase_energy(self, amount: int = FOOD_ENERGY):
        self.energy += amount

    def mutate(self, rng: np.random.Generator) -> int:
        """Idle-tick mutation of one gene locus."""
        return self.gene.mutate(rng)

    def split(self, child_id: int) -> 'Ant':
        """
        Asexual reproduction.

        The child copies team, gene (pointer included) and direction. Both
        sides keep half of the pre-split energy, floored independently, and
        the child's age restarts at 0.

        Args:
            child_id: Arena handle for the newborn

        Returns:
            The child ant (not yet placed on the grid)
        """
        child = Ant(
            ant_id=child_id,
            team=self.team,
            gene=self.gene.copy(),
            energy=self.energy // 2,
            direction=self.direction,
            sensor=self.sensor,
            age=0,
            generation=self.generation + 1
        )
        self.energy //= 2
        return child

    def summary(self) -> AntSummary:
        return AntSummary(self.ant_id, self.team, self.energy, self.age)

    def to_dict(self) -> dict:
        """
        Serialize ant to JSON-compatible dict.

        Returns:
            Dict with all ant fields, gene rendered as instruction strings
        """
        return {
            'ant_id': self.ant_id,
            'team': self.team.value,
            'energy': self.energy,
            'age': self.age,
            'direction': self.direction.value,
            'sensor': self.sensor,
            'generation': self.generation,
            'instruction_pointer': self.gene.instruction_pointer,
            'gene': self.gene.to_list()
        }
