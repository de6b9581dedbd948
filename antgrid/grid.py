"""
Grid simulation kernel.

Row-major board of cells (Empty / Food / Ant). Ants live in an arena keyed
by stable ant_id; the board stores ids, so an ant keeps its identity when a
move swaps it into a neighboring cell.

TWO-PHASE TICK CONTRACT (Critical Invariant):

Phase A: Decide (cell array read-only)
--------------------------------------
Every cell is scanned once in index order against the tick-start board.
Ants execute one gene cycle and pay their action costs immediately.
Board changes (food growth, eaten food, swaps, births, deaths) are queued
as CellMutation records. Attack damage is the one exception: it is applied
to the defender in place, through the arena, during the scan.

Phase B: Apply
--------------
Queued mutations are committed in proposal order.

Why This Matters:
- A moved or newborn ant is never executed twice in the same tick
- The array being scanned is never mutated mid-scan
"""

import dataclasses
import numpy as np
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Iterator, List, Optional, Set, Tuple

from .ant import Action, Ant, AntSummary, Direction
from .constants import SPAWN_DIE_SIDES, SPAWN_ANT_FACE, SPAWN_FOOD_FACE
from .data_types import GridConfig
from .gene import Gene
from .rng import make_rng
from .team import Team, TEAMS, is_hostile, random_team


class CellKind(IntEnum):
    EMPTY = 0
    FOOD = 1
    ANT = 2


NO_OCCUPANT = -1


class MutationKind(Enum):
    GROW_FOOD = 'grow_food'      # empty -> food (spontaneous growth)
    REMOVE_FOOD = 'remove_food'  # food -> empty (eaten)
    SWAP = 'swap'                # exchange ant cell and empty cell
    BORN = 'born'                # empty -> newborn ant
    DEATH = 'death'              # ant cell -> food


@dataclass
class CellMutation:
    """
    Board change proposed during Phase A.

    Attributes:
        kind: What to do
        index: Target cell (for SWAP, the destination)
        other: SWAP source cell
        ant: Newborn for BORN, dying ant for DEATH
    """
    kind: MutationKind
    index: int
    other: Optional[int] = None
    ant: Optional[Ant] = None


@dataclass
class CellView:
    """Read-only cell view for renderers"""
    index: int
    kind: CellKind
    occupant: Optional[AntSummary] = None


TELEMETRY_KEYS = (
    'food_grown',
    'food_eaten',
    'moves',
    'attacks',
    'hits',
    'births',
    'deaths',
    'overwritten',
    'mutations',
)


def _truncated_div(value: int, divisor: int) -> int:
    """Signed integer division rounding toward zero (divisor > 0)."""
    quotient = abs(value) // divisor
    return quotient if value >= 0 else -quotient


class Grid:
    """
    Fixed-size board of cells plus the ant arena.

    Invariants:
        - len(kinds) == len(occupants) == config.cell_count, fixed for life
        - kinds[i] == ANT exactly when occupants[i] refers to an arena ant
        - every arena ant occupies exactly one cell
    """

    def __init__(
        self,
        width: int,
        height: int,
        config: Optional[GridConfig] = None,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Build an all-empty grid.

        Args:
            width: Cells per row
            height: Number of rows
            config: Lifecycle tuning (defaults to GridConfig()); width and
                    height arguments take precedence over its geometry
            rng: Random source (defaults to make_rng(config.seed))
        """
        if config is None:
            config = GridConfig(width=width, height=height)
        elif (config.width, config.height) != (width, height):
            config = dataclasses.replace(config, width=width, height=height)

        self.config: GridConfig = config
        self.width: int = config.width
        self.height: int = config.height
        self.rng: np.random.Generator = rng if rng is not None else make_rng(config.seed)

        # Cell array (SoA): kind codes + arena ids
        self.kinds: np.ndarray = np.full(config.cell_count, CellKind.EMPTY, dtype=np.int8)
        self.occupants: np.ndarray = np.full(config.cell_count, NO_OCCUPANT, dtype=np.int64)

        # Arena
        self.ants: Dict[int, Ant] = {}
        self._next_ant_id: int = 0

        self.tick_count: int = 0
        self.last_tick_telemetry: Dict[str, int] = dict.fromkeys(TELEMETRY_KEYS, 0)

    @classmethod
    def random(
        cls,
        width: int,
        height: int,
        config: Optional[GridConfig] = None,
        rng: Optional[np.random.Generator] = None
    ) -> 'Grid':
        """
        Build a populated grid.

        Each cell independently becomes an ant (1/9), food (1/9) or stays
        empty (7/9). Ants get a random team and gene, default energy, and
        face North.
        """
        grid = cls(width, height, config, rng)
        faces = grid.rng.integers(0, SPAWN_DIE_SIDES, size=grid.size)

        for index, face in enumerate(faces):
            if face == SPAWN_ANT_FACE:
                ant = Ant.random(
                    grid._new_ant_id(),
                    grid.rng,
                    gene_length=grid.config.gene_length,
                    energy=grid.config.initial_energy
                )
                grid.place_ant(index, ant)
            elif face == SPAWN_FOOD_FACE:
                grid.place_food(index)

        return grid

    @classmethod
    def from_config(cls, config: GridConfig, rng: Optional[np.random.Generator] = None) -> 'Grid':
        """Populated grid using the config's geometry and seed."""
        return cls.random(config.width, config.height, config, rng)

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        """Number of cells (includes the spare cell when configured)"""
        return len(self.kinds)

    def coordinates(self, index: int) -> Tuple[int, int]:
        """(x, y) of a cell; the spare cell reports y == height."""
        return index % self.width, index // self.width

    def index_of(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError(f"({x}, {y}) outside {self.width}x{self.height} grid")
        return x + y * self.width

    def ahead_index(self, index: int, direction: Direction) -> Optional[int]:
        """
        Index one step ahead, or None at a grid edge.

        Edges do not wrap. Results are also bounds-checked against the cell
        array so the spare cell never yields an out-of-range index.
        """
        x, y = self.coordinates(index)

        if direction is Direction.EAST:
            target = index + 1 if x + 1 < self.width else None
        elif direction is Direction.WEST:
            target = index - 1 if x > 0 else None
        elif direction is Direction.NORTH:
            target = index - self.width if y > 0 else None
        else:
            target = index + self.width if y + 1 < self.height else None

        if target is None or target >= self.size:
            return None
        return target

    def neighbor_is_empty(self, index: int) -> bool:
        """True if any in-bounds orthogonal neighbor is Empty."""
        for direction in Direction:
            neighbor = self.ahead_index(index, direction)
            if neighbor is not None and self.kinds[neighbor] == CellKind.EMPTY:
                return True
        return False

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    def _check_index(self, index: int):
        if not 0 <= index < self.size:
            raise ValueError(f"Cell index {index} outside grid of {self.size} cells")

    def _new_ant_id(self) -> int:
        ant_id = self._next_ant_id
        self._next_ant_id += 1
        return ant_id

    def new_ant(
        self,
        gene: Optional[Gene] = None,
        team: Optional[Team] = None,
        energy: Optional[int] = None,
        direction: Direction = Direction.NORTH
    ) -> Ant:
        """
        Create an ant with a fresh arena id (not yet placed).

        Only a team or gene left unspecified is sampled from the grid's
        rng (team first), so hand-built ants do not shift the stream.
        """
        if team is None:
            team = random_team(self.rng)
        if gene is None:
            gene = Gene.random(self.rng, self.config.gene_length)
        return Ant(
            ant_id=self._new_ant_id(),
            team=team,
            gene=gene,
            energy=self.config.initial_energy if energy is None else energy,
            direction=direction
        )

    def kind_at(self, index: int) -> CellKind:
        return CellKind(int(self.kinds[index]))

    def ant_at(self, index: int) -> Optional[Ant]:
        ant_id = int(self.occupants[index])
        if ant_id == NO_OCCUPANT:
            return None
        return self.ants[ant_id]

    def index_of_ant(self, ant_id: int) -> Optional[int]:
        hits = np.flatnonzero(self.occupants == ant_id)
        if len(hits) == 0:
            return None
        return int(hits[0])

    def _overwrite(self, index: int, kind: CellKind, occupant: int = NO_OCCUPANT) -> Optional[int]:
        """
        Write a cell, evicting any previous occupant from the arena.

        Returns:
            The evicted ant_id, or None
        """
        previous = int(self.occupants[index])
        if previous != NO_OCCUPANT:
            del self.ants[previous]

        self.kinds[index] = kind
        self.occupants[index] = occupant
        return previous if previous != NO_OCCUPANT else None

    def place_ant(self, index: int, ant: Ant) -> Ant:
        """Put an ant on the grid (setup and births)."""
        self._check_index(index)
        if ant.ant_id in self.ants:
            raise ValueError(f"Ant {ant.ant_id} is already on the grid")

        self._overwrite(index, CellKind.ANT, ant.ant_id)
        self.ants[ant.ant_id] = ant
        self._next_ant_id = max(self._next_ant_id, ant.ant_id + 1)
        return ant

    def place_food(self, index: int):
        self._check_index(index)
        self._overwrite(index, CellKind.FOOD)

    def clear(self, index: int):
        self._check_index(index)
        self._overwrite(index, CellKind.EMPTY)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self):
        """
        Advance the board by one synchronous step.

        Phase A queues mutations against the tick-start board, Phase B
        commits them in order. Per-tick counters land in
        last_tick_telemetry.
        """
        telemetry = dict.fromkeys(TELEMETRY_KEYS, 0)

        mutations = self._decide(telemetry)
        self._apply(mutations, telemetry)

        self.tick_count += 1
        self.last_tick_telemetry = telemetry

    def _decide(self, telemetry: Dict[str, int]) -> List[CellMutation]:
        """
        Phase A: scan every cell once.

        Returns:
            Mutations in proposal (scan) order
        """
        mutations: List[CellMutation] = []
        visited: Set[int] = set()

        # One growth draw per cell, consumed only by empty cells
        growth_draws = self.rng.random(self.size)
        growth_chance = self.config.food_growth_chance

        for index in range(self.size):
            kind = self.kinds[index]

            if kind == CellKind.EMPTY:
                if growth_draws[index] < growth_chance:
                    mutations.append(CellMutation(MutationKind.GROW_FOOD, index))
                continue

            if kind == CellKind.FOOD:
                continue

            ant = self.ants[int(self.occupants[index])]
            if ant.ant_id in visited:
                continue
            visited.add(ant.ant_id)

            self._decide_ant(index, ant, mutations, telemetry)

        return mutations

    def _decide_ant(
        self,
        index: int,
        ant: Ant,
        mutations: List[CellMutation],
        telemetry: Dict[str, int]
    ):
        """Execute one ant and queue the board changes it causes."""
        config = self.config
        action = ant.execute()
        ahead = self.ahead_index(index, ant.direction)

        if action is Action.MOVE:
            # Only a successful move costs energy or refreshes the sensor
            if ahead is not None and self.kinds[ahead] == CellKind.EMPTY:
                mutations.append(CellMutation(MutationKind.SWAP, ahead, other=index))
                ant.consume_energy(config.action_cost)
                ant.sensor = self.neighbor_is_empty(ahead)

        elif action is Action.ATTACK:
            ant.consume_energy(config.action_cost)
            telemetry['attacks'] += 1
            if ahead is not None and self.kinds[ahead] == CellKind.ANT:
                defender = self.ants[int(self.occupants[ahead])]
                if is_hostile(ant.team, defender.team):
                    # Immediate, not queued
                    defender.consume_energy(_truncated_div(ant.energy, config.attack_divisor))
                    telemetry['hits'] += 1

        elif action is Action.EAT:
            ant.consume_energy(config.action_cost)
            if ahead is not None and self.kinds[ahead] == CellKind.FOOD:
                mutations.append(CellMutation(MutationKind.REMOVE_FOOD, ahead))
                ant.increase_energy(config.food_energy)
                telemetry['food_eaten'] += 1

        else:
            ant.mutate(self.rng)
            telemetry['mutations'] += 1

        # Spawn slot is the previous cell in scan order
        if ant.energy > config.split_energy and index > 0 \
                and self.kinds[index - 1] == CellKind.EMPTY:
            child = ant.split(self._new_ant_id())
            mutations.append(CellMutation(MutationKind.BORN, index - 1, ant=child))

        if ant.energy <= 0:
            mutations.append(CellMutation(MutationKind.DEATH, index, ant=ant))

    def _apply(self, mutations: List[CellMutation], telemetry: Dict[str, int]):
        """Phase B: commit queued mutations in proposal order."""
        for mutation in mutations:
            kind = mutation.kind
            index = mutation.index

            if kind is MutationKind.SWAP:
                self._swap(index, mutation.other)
                telemetry['moves'] += 1
                continue

            if kind is MutationKind.GROW_FOOD:
                evicted = self._overwrite(index, CellKind.FOOD)
                telemetry['food_grown'] += 1
            elif kind is MutationKind.REMOVE_FOOD:
                evicted = self._overwrite(index, CellKind.EMPTY)
            elif kind is MutationKind.BORN:
                evicted = self._overwrite(index, CellKind.ANT, mutation.ant.ant_id)
                self.ants[mutation.ant.ant_id] = mutation.ant
                telemetry['births'] += 1
            else:
                evicted = self._overwrite(index, CellKind.FOOD)

            if evicted is None:
                continue
            if kind is MutationKind.DEATH and evicted == mutation.ant.ant_id:
                telemetry['deaths'] += 1
            else:
                telemetry['overwritten'] += 1

    def _swap(self, a: int, b: int):
        kind_a, occupant_a = int(self.kinds[a]), int(self.occupants[a])
        self.kinds[a], self.occupants[a] = self.kinds[b], self.occupants[b]
        self.kinds[b], self.occupants[b] = kind_a, occupant_a

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def iter_cells(self) -> Iterator[CellView]:
        """Yield (index, kind, occupant summary) for every cell."""
        for index in range(self.size):
            kind = CellKind(int(self.kinds[index]))
            if kind == CellKind.ANT:
                yield CellView(index, kind, self.ants[int(self.occupants[index])].summary())
            else:
                yield CellView(index, kind)

    def count(self, kind: CellKind) -> int:
        return int(np.count_nonzero(self.kinds == kind))

    def population_by_team(self) -> Dict[Team, int]:
        counts = {team: 0 for team in TEAMS}
        for ant in self.ants.values():
            counts[ant.team] += 1
        return counts

    def kind_grid(self) -> np.ndarray:
        """(height, width) copy of cell kinds, spare cell excluded"""
        return self.kinds[:self.width * self.height].reshape(self.height, self.width).copy()

    def get_snapshot(self) -> dict:
        """
        Get complete board snapshot.

        Returns:
            JSON-compatible dict with tick_count, geometry, counts, ants
        """
        ants = []
        for index in np.flatnonzero(self.kinds == CellKind.ANT):
            record = self.ants[int(self.occupants[index])].to_dict()
            record['index'] = int(index)
            ants.append(record)

        return {
            'tick_count': self.tick_count,
            'width': self.width,
            'height': self.height,
            'cell_count': self.size,
            'ant_count': len(self.ants),
            'food_count': self.count(CellKind.FOOD),
            'population': {team.value: n for team, n in self.population_by_team().items()},
            'ants': ants
        }

    def check_invariants(self):
        """Assert board/arena consistency (debug builds and tests)"""
        assert len(self.kinds) == len(self.occupants) == self.config.cell_count, \
            f"cell array length changed: {len(self.kinds)} != {self.config.cell_count}"

        ant_cells = self.kinds == CellKind.ANT
        occupied = self.occupants != NO_OCCUPANT
        assert np.array_equal(ant_cells, occupied), "ANT cells and occupant ids disagree"

        ids = self.occupants[occupied].tolist()
        assert len(ids) == len(set(ids)), "ant occupies more than one cell"
        assert set(ids) == set(self.ants), \
            f"arena/board mismatch: board={len(ids)} arena={len(self.ants)}"

        for ant in self.ants.values():
            assert 0 <= ant.gene.instruction_pointer < len(ant.gene), \
                f"ant {ant.ant_id} instruction pointer out of range"
