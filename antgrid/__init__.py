"""
Ant Grid Simulation

Gene-driven ants forage, fight, split and die on a 2D board. Each ant runs
a tiny mutable instruction tape; idle ticks mutate it, so behavior drifts
and competes over time.

Architecture: Grid is the source of truth. Renderers and drivers are consumers.
"""

__version__ = "0.1.0"
