"""
Central configuration constants for the ant grid simulation.

Defines default values, thresholds, and probabilities used across
multiple modules. GridConfig fields default to these values.
"""

# ============================================================================
# Gene / Instruction VM
# ============================================================================

# Instructions per gene tape
DEFAULT_GENE_LENGTH = 20


# ============================================================================
# Energy Economy
# ============================================================================

# Energy of an ant placed at grid construction
DEFAULT_ANT_ENERGY = 50

# Energy credited for eating one food cell
FOOD_ENERGY = 150

# Ants above this energy split into the preceding empty cell
SPLIT_ENERGY = 120

# Flat charge for Move, Eat and Attack (Move only pays when the swap happens)
ACTION_ENERGY_COST = 1

# Attack damage = attacker energy / ATTACK_DAMAGE_DIVISOR (truncated)
ATTACK_DAMAGE_DIVISOR = 10


# ============================================================================
# Grid Dynamics
# ============================================================================

# Chance per tick that an empty cell grows food
FOOD_GROWTH_CHANCE = 0.001

# Construction draws integers(0, SPAWN_DIE_SIDES) per cell:
# SPAWN_ANT_FACE -> ant, SPAWN_FOOD_FACE -> food, anything else -> empty
SPAWN_DIE_SIDES = 9
SPAWN_ANT_FACE = 0
SPAWN_FOOD_FACE = 1

# Construction allocates width * height + 1 cells (historical layout).
# The spare cell sits after the last row and is scanned like any other.
SPARE_CELL = True


# ============================================================================
# Performance / Monitoring
# ============================================================================

# Tick timing window for rolling average
TICK_TIME_WINDOW = 100  # Number of ticks to average

# Default tick summary interval (print every N ticks)
TICK_SUMMARY_INTERVAL = 100
