"""
Team affiliations.

Teams only gate combat: an Attack deals damage when attacker and
defender belong to different teams.
"""

import numpy as np
from enum import Enum


class Team(Enum):
    BLUE = 'blue'
    RED = 'red'
    YELLOW = 'yellow'
    CYAN = 'cyan'


TEAMS = tuple(Team)


def random_team(rng: np.random.Generator) -> Team:
    """Sample a team uniformly."""
    return TEAMS[int(rng.integers(0, len(TEAMS)))]


def is_hostile(a: Team, b: Team) -> bool:
    """No friendly fire."""
    return a != b
