"""
Test the two-phase tick.

Verifies:
- Eat, Move, Attack, idle mutation, split and death on hand-built boards
- Unresolvable actions drop silently but keep their energy charge
- Moved/newborn ants are not executed twice in one tick
- Documented current behavior: immediate attack damage, apply-order
  overwrites, moved-then-dead ants surviving a tick
- Invariants hold over long random runs
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from antgrid.ant import Direction
from antgrid.data_types import GridConfig
from antgrid.gene import Gene, Instruction, Opcode
from antgrid.grid import Grid, CellKind, _truncated_div
from antgrid.rng import make_rng
from antgrid.team import Team


def make_grid(width: int = 3, height: int = 1, **overrides) -> Grid:
    """Deterministic board: no spare cell, no spontaneous food."""
    overrides.setdefault('food_growth_chance', 0.0)
    config = GridConfig(width=width, height=height, spare_cell=False, **overrides)
    return Grid(width, height, config, rng=make_rng(7))


def put_ant(grid, index, *opcodes, energy=50, direction=Direction.NORTH, team=Team.RED):
    ant = grid.new_ant(gene=Gene.from_opcodes(*opcodes), team=team, energy=energy, direction=direction)
    return grid.place_ant(index, ant)


# ============================================================================
# Scenarios
# ============================================================================

def test_eat_food_ahead():
    """1x3 board: ant at 0 facing East eats food at 1"""
    grid = make_grid()
    ant = put_ant(grid, 0, Opcode.EAT, direction=Direction.EAST)
    grid.place_food(1)

    grid.tick()

    assert grid.kind_at(1) is CellKind.EMPTY
    assert grid.ant_at(0) is ant
    assert ant.energy == 50 - 1 + 150
    assert grid.last_tick_telemetry['food_eaten'] == 1


def test_move_into_empty_cell():
    """1x3 board: ant at 0 facing East moves to 1"""
    grid = make_grid()
    ant = put_ant(grid, 0, Opcode.MOVE, direction=Direction.EAST)

    grid.tick()

    assert grid.ant_at(1) is ant
    assert grid.kind_at(0) is CellKind.EMPTY
    assert ant.energy == 49
    # Cell 2 is empty next to the destination
    assert ant.sensor is True
    assert grid.last_tick_telemetry['moves'] == 1


def test_move_sensor_reads_destination_neighborhood():
    grid = make_grid()
    ant = put_ant(grid, 0, Opcode.MOVE, direction=Direction.EAST)
    ant.sensor = True
    grid.place_food(2)

    grid.tick()

    # Destination 1 has neighbors 0 (still the mover at tick start) and 2 (food)
    assert grid.ant_at(1) is ant
    assert ant.sensor is False


def test_split_into_preceding_cell():
    grid = make_grid()
    parent = put_ant(grid, 1, Opcode.EAT, energy=130)

    grid.tick()

    child = grid.ant_at(0)
    assert child is not None and child is not parent
    assert child.age == 0
    assert child.energy == 129 // 2
    assert parent.energy == 129 // 2
    assert child.team is parent.team
    assert child.gene.code == parent.gene.code
    assert child.gene is not parent.gene
    assert grid.ant_at(1) is parent
    assert grid.last_tick_telemetry['births'] == 1
    grid.check_invariants()


def test_death_turns_cell_into_food():
    grid = make_grid()
    ant = put_ant(grid, 1, Opcode.EAT, energy=1)

    grid.tick()

    assert grid.kind_at(1) is CellKind.FOOD
    assert ant.ant_id not in grid.ants
    assert grid.last_tick_telemetry['deaths'] == 1
    grid.check_invariants()


# ============================================================================
# Action resolution
# ============================================================================

def test_eat_without_food_still_charges():
    grid = make_grid()
    ant = put_ant(grid, 0, Opcode.EAT, direction=Direction.EAST)
    before = grid.kinds.copy()

    grid.tick()

    assert np.array_equal(grid.kinds, before)
    assert ant.energy == 49


def test_eat_ant_ahead_is_not_food():
    grid = make_grid()
    eater = put_ant(grid, 0, Opcode.EAT, direction=Direction.EAST)
    other = put_ant(grid, 1, Opcode.NOOP, team=Team.BLUE)

    grid.tick()

    assert grid.ant_at(1) is other
    assert eater.energy == 49


def test_eat_at_edge_still_charges():
    grid = make_grid()
    ant = put_ant(grid, 2, Opcode.EAT, direction=Direction.EAST)
    grid.tick()
    assert ant.energy == 49


def test_move_blocked_by_food():
    grid = make_grid()
    ant = put_ant(grid, 0, Opcode.MOVE, direction=Direction.EAST)
    ant.sensor = True
    grid.place_food(1)

    grid.tick()

    assert grid.ant_at(0) is ant
    assert grid.kind_at(1) is CellKind.FOOD
    assert ant.energy == 50
    assert ant.sensor is True


def test_move_blocked_by_edge():
    grid = make_grid()
    ant = put_ant(grid, 2, Opcode.MOVE, direction=Direction.EAST)

    grid.tick()

    assert grid.ant_at(2) is ant
    assert ant.energy == 50
    assert grid.last_tick_telemetry['moves'] == 0


def test_move_blocked_by_ant():
    grid = make_grid()
    mover = put_ant(grid, 0, Opcode.MOVE, direction=Direction.EAST)
    blocker = put_ant(grid, 1, Opcode.NOOP)

    grid.tick()

    assert grid.ant_at(0) is mover
    assert grid.ant_at(1) is blocker
    assert mover.energy == 50


def test_attack_other_team_deals_damage():
    grid = make_grid()
    attacker = put_ant(grid, 0, Opcode.ATTACK, energy=51, direction=Direction.EAST, team=Team.RED)
    defender = put_ant(grid, 1, Opcode.EAT, energy=50, team=Team.BLUE)

    grid.tick()

    assert attacker.energy == 50
    # 50 // 10 damage, then the defender pays for its own Eat
    assert defender.energy == 50 - 5 - 1
    assert grid.last_tick_telemetry['attacks'] == 1
    assert grid.last_tick_telemetry['hits'] == 1


def test_attack_same_team_is_harmless():
    grid = make_grid()
    attacker = put_ant(grid, 0, Opcode.ATTACK, energy=51, direction=Direction.EAST, team=Team.YELLOW)
    defender = put_ant(grid, 1, Opcode.EAT, energy=50, team=Team.YELLOW)

    grid.tick()

    assert attacker.energy == 50
    assert defender.energy == 49
    assert grid.last_tick_telemetry['hits'] == 0


def test_attack_empty_cell_still_charges():
    grid = make_grid()
    attacker = put_ant(grid, 0, Opcode.ATTACK, direction=Direction.EAST)
    grid.tick()
    assert attacker.energy == 49


DAMAGE_CASES = [(15, 1), (9, 0), (0, 0), (-9, 0), (-15, -1), (100, 10)]


@pytest.mark.parametrize('value,expected', DAMAGE_CASES)
def test_damage_truncates_toward_zero(value, expected):
    assert _truncated_div(value, 10) == expected


def test_idle_tick_mutates_gene():
    grid = make_grid()
    ant = put_ant(grid, 1, *([Opcode.NOOP] * 20))

    grid.tick()

    assert grid.last_tick_telemetry['mutations'] == 1
    assert len(ant.gene) == 20
    assert ant.energy == 50
    assert ant.age == 1


def test_turn_is_idle():
    grid = make_grid()
    ant = put_ant(grid, 1, Opcode.TURN_LEFT, Opcode.TURN_LEFT)

    grid.tick()

    assert ant.direction is Direction.WEST
    assert grid.last_tick_telemetry['mutations'] == 1


def test_taken_jump_is_idle():
    grid = make_grid()
    gene = Gene([Instruction(Opcode.JUMP_IF_SENSOR_FALSE, 0), Instruction(Opcode.EAT)])
    ant = grid.place_ant(1, grid.new_ant(gene=gene))

    grid.tick()

    assert grid.last_tick_telemetry['mutations'] == 1
    assert ant.energy == 50


# ============================================================================
# Reproduction edge cases
# ============================================================================

def test_no_split_at_index_zero():
    grid = make_grid()
    ant = put_ant(grid, 0, Opcode.EAT, energy=200)

    grid.tick()

    assert ant.energy == 199
    assert len(grid.ants) == 1


def test_no_split_into_occupied_cell():
    grid = make_grid()
    grid.place_food(0)
    ant = put_ant(grid, 1, Opcode.EAT, energy=200)

    grid.tick()

    assert ant.energy == 199
    assert grid.kind_at(0) is CellKind.FOOD


def test_no_split_at_threshold():
    grid = make_grid()
    ant = put_ant(grid, 1, Opcode.EAT, energy=121)

    grid.tick()

    # 120 is not above the threshold
    assert ant.energy == 120
    assert grid.kind_at(0) is CellKind.EMPTY


def test_split_slot_wraps_to_previous_row():
    grid = make_grid(3, 2)
    parent = put_ant(grid, 3, Opcode.EAT, energy=300)

    grid.tick()

    # Index 2 is the last cell of row 0, not a spatial neighbor of index 3
    child = grid.ant_at(2)
    assert child is not None
    assert child.energy == 299 // 2
    assert parent.energy == 299 // 2


def test_eat_then_split_same_tick():
    grid = make_grid()
    parent = put_ant(grid, 1, Opcode.EAT, energy=50, direction=Direction.EAST)
    grid.place_food(2)

    grid.tick()

    assert grid.kind_at(2) is CellKind.EMPTY
    assert grid.ant_at(0).energy == 199 // 2
    assert parent.energy == 199 // 2


# ============================================================================
# Two-phase discipline
# ============================================================================

def test_moved_ant_executes_once():
    grid = make_grid(4, 1)
    ant = put_ant(grid, 0, Opcode.MOVE, direction=Direction.EAST)

    grid.tick()

    assert grid.ant_at(1) is ant
    assert ant.age == 1
    assert ant.energy == 49


def test_newborn_not_executed_in_birth_tick():
    grid = make_grid()
    parent = put_ant(grid, 1, Opcode.EAT, energy=200)

    grid.tick()

    child = grid.ant_at(0)
    assert child.age == 0
    assert child.energy == 199 // 2


def test_every_ant_ages_once_per_tick():
    grid = Grid.random(20, 20, rng=make_rng(31))

    for _ in range(10):
        ages = {ant_id: ant.age for ant_id, ant in grid.ants.items()}
        grid.tick()
        for ant_id, ant in grid.ants.items():
            if ant_id in ages:
                assert ant.age == ages[ant_id] + 1
            else:
                assert ant.age == 0


def test_food_growth():
    grid = make_grid(food_growth_chance=1.0)
    grid.tick()
    assert grid.count(CellKind.FOOD) == 3
    assert grid.last_tick_telemetry['food_grown'] == 3


def test_no_food_growth_on_occupied_cells():
    grid = make_grid(food_growth_chance=1.0)
    grid.place_food(0)
    ant = put_ant(grid, 2, Opcode.EAT)

    grid.tick()

    assert grid.last_tick_telemetry['food_grown'] == 1
    assert grid.ant_at(2) is ant


# ============================================================================
# Documented current behavior
# ============================================================================

def test_attack_damage_lands_before_defender_acts():
    """Attacker scanned first: defender sees the damage in the same tick"""
    grid = make_grid()
    put_ant(grid, 0, Opcode.ATTACK, energy=101, direction=Direction.EAST, team=Team.RED)
    defender = put_ant(grid, 1, Opcode.EAT, energy=3, team=Team.BLUE)

    grid.tick()

    assert grid.kind_at(1) is CellKind.FOOD
    assert defender.ant_id not in grid.ants


def test_attack_on_already_scanned_defender_defers_death():
    """Defender scanned first: its death waits for the next tick"""
    grid = make_grid()
    defender = put_ant(grid, 0, Opcode.EAT, energy=3, team=Team.BLUE)
    put_ant(grid, 1, Opcode.ATTACK, energy=101, direction=Direction.WEST, team=Team.RED)

    grid.tick()

    assert grid.ant_at(0) is defender
    assert defender.energy == 2 - 10

    grid.tick()

    assert grid.kind_at(0) is CellKind.FOOD
    assert defender.ant_id not in grid.ants


def test_dying_mover_survives_at_destination():
    """Swap commits before the death conversion of the vacated cell"""
    grid = make_grid()
    ant = put_ant(grid, 0, Opcode.MOVE, energy=1, direction=Direction.EAST)

    grid.tick()

    assert grid.ant_at(1) is ant
    assert ant.energy == 0
    assert grid.kind_at(0) is CellKind.FOOD
    assert grid.last_tick_telemetry['deaths'] == 0


def test_food_growth_overwrites_arriving_ant():
    """Growth proposed for a cell the mover enters later in apply order"""
    grid = make_grid(food_growth_chance=1.0)
    ant = put_ant(grid, 0, Opcode.MOVE, direction=Direction.EAST)

    grid.tick()

    assert ant.ant_id not in grid.ants
    assert grid.kind_at(0) is CellKind.EMPTY
    assert grid.kind_at(1) is CellKind.FOOD
    assert grid.last_tick_telemetry['overwritten'] == 1
    grid.check_invariants()


def test_two_eaters_share_one_food():
    grid = make_grid()
    left = put_ant(grid, 0, Opcode.EAT, direction=Direction.EAST)
    right = put_ant(grid, 2, Opcode.EAT, direction=Direction.WEST)
    grid.place_food(1)

    grid.tick()

    assert left.energy == 199
    assert right.energy == 199
    assert grid.kind_at(1) is CellKind.EMPTY


def test_spare_cell_is_allocated():
    grid = Grid(4, 3, GridConfig(width=4, height=3))
    assert grid.size == 13
    grid.place_ant(12, grid.new_ant(gene=Gene.from_opcodes(Opcode.MOVE), direction=Direction.EAST))
    grid.tick()
    grid.check_invariants()


# ============================================================================
# Long-run properties
# ============================================================================

def test_invariants_over_random_run():
    grid = Grid.random(30, 30, rng=make_rng(2025))

    for _ in range(200):
        grid.tick()
        grid.check_invariants()
        for ant in grid.ants.values():
            assert 0 <= ant.gene.instruction_pointer < len(ant.gene)

    assert grid.tick_count == 200
    assert grid.size == 30 * 30 + 1


def test_seeded_runs_repeat():
    a = Grid.random(20, 20, rng=make_rng(5))
    b = Grid.random(20, 20, rng=make_rng(5))

    for _ in range(50):
        a.tick()
        b.tick()

    assert np.array_equal(a.kinds, b.kinds)
    assert a.get_snapshot() == b.get_snapshot()


def test_snapshot_contents():
    grid = make_grid()
    ant = put_ant(grid, 1, Opcode.EAT, energy=60)
    grid.place_food(2)

    snapshot = grid.get_snapshot()

    assert snapshot['ant_count'] == 1
    assert snapshot['food_count'] == 1
    assert snapshot['cell_count'] == 3
    assert snapshot['ants'][0]['index'] == 1
    assert snapshot['ants'][0]['ant_id'] == ant.ant_id
    assert snapshot['population']['red'] == 1


if __name__ == '__main__':
    print("=" * 60)
    print("Grid Tick Tests")
    print("=" * 60)
    print()

    try:
        for value, expected in DAMAGE_CASES:
            test_damage_truncates_toward_zero(value, expected)
        print("[OK] test_damage_truncates_toward_zero")

        for test in (
            test_eat_food_ahead,
            test_move_into_empty_cell,
            test_move_sensor_reads_destination_neighborhood,
            test_split_into_preceding_cell,
            test_death_turns_cell_into_food,
            test_eat_without_food_still_charges,
            test_eat_ant_ahead_is_not_food,
            test_eat_at_edge_still_charges,
            test_move_blocked_by_food,
            test_move_blocked_by_edge,
            test_move_blocked_by_ant,
            test_attack_other_team_deals_damage,
            test_attack_same_team_is_harmless,
            test_attack_empty_cell_still_charges,
            test_idle_tick_mutates_gene,
            test_turn_is_idle,
            test_taken_jump_is_idle,
            test_no_split_at_index_zero,
            test_no_split_into_occupied_cell,
            test_no_split_at_threshold,
            test_split_slot_wraps_to_previous_row,
            test_eat_then_split_same_tick,
            test_moved_ant_executes_once,
            test_newborn_not_executed_in_birth_tick,
            test_every_ant_ages_once_per_tick,
            test_food_growth,
            test_no_food_growth_on_occupied_cells,
            test_attack_damage_lands_before_defender_acts,
            test_attack_on_already_scanned_defender_defers_death,
            test_dying_mover_survives_at_destination,
            test_food_growth_overwrites_arriving_ant,
            test_two_eaters_share_one_food,
            test_spare_cell_is_allocated,
            test_invariants_over_random_run,
            test_seeded_runs_repeat,
            test_snapshot_contents,
        ):
            test()
            print(f"[OK] {test.__name__}")

    except Exception as e:
        print(f"\n[FAIL] Test failed: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)

    print("=" * 60)
    print("[PASS] All tick tests passed!")
    print("=" * 60)
