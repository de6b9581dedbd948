"""
Gene: the per-ant instruction tape.

A gene is a fixed-length circular tape of instructions plus an instruction
pointer. Each tick the owning ant consumes exactly one instruction via
cycle(). Idle ticks mutate a single random locus, which is the only source
of genetic drift in the simulation.
"""

import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from .constants import DEFAULT_GENE_LENGTH


class Opcode(Enum):
    """Closed instruction set."""
    NOOP = 'noop'
    MOVE = 'move'
    TURN_LEFT = 'turn_left'
    TURN_RIGHT = 'turn_right'
    EAT = 'eat'
    ATTACK = 'attack'
    JUMP_IF_SENSOR_FALSE = 'jump_if_sensor_false'
    JUMP_IF_SENSOR_TRUE = 'jump_if_sensor_true'


JUMP_OPCODES = (Opcode.JUMP_IF_SENSOR_FALSE, Opcode.JUMP_IF_SENSOR_TRUE)

# Sampling order for random_instruction (uniform over the 8 opcodes)
OPCODE_TABLE = (
    Opcode.NOOP,
    Opcode.MOVE,
    Opcode.TURN_LEFT,
    Opcode.TURN_RIGHT,
    Opcode.EAT,
    Opcode.ATTACK,
    Opcode.JUMP_IF_SENSOR_TRUE,
    Opcode.JUMP_IF_SENSOR_FALSE,
)


@dataclass(frozen=True)
class Instruction:
    """
    One tape cell.

    Attributes:
        opcode: Operation to perform
        target: Absolute tape index for jump opcodes, None otherwise
    """
    opcode: Opcode
    target: Optional[int] = None

    def __str__(self) -> str:
        if self.target is None:
            return self.opcode.value
        return f"{self.opcode.value}({self.target})"


def random_instruction(rng: np.random.Generator, tape_length: int) -> Instruction:
    """
    Sample an instruction uniformly from the opcode set.

    Jump targets are sampled uniformly over [0, tape_length).
    """
    opcode = OPCODE_TABLE[int(rng.integers(0, len(OPCODE_TABLE)))]
    if opcode in JUMP_OPCODES:
        return Instruction(opcode, int(rng.integers(0, tape_length)))
    return Instruction(opcode)


class Gene:
    """
    Circular instruction tape with an instruction pointer.

    Invariant: 0 <= instruction_pointer < len(code), and every jump target
    indexes the tape. Both are enforced at construction; afterwards the
    pointer only ever moves modulo the tape length.
    """

    def __init__(self, code: Iterable[Instruction], instruction_pointer: int = 0):
        self.code: List[Instruction] = list(code)
        if not self.code:
            raise ValueError("Gene tape must contain at least one instruction")

        for locus, instruction in enumerate(self.code):
            if instruction.opcode in JUMP_OPCODES:
                if instruction.target is None or not 0 <= instruction.target < len(self.code):
                    raise ValueError(
                        f"Jump target {instruction.target} at locus {locus} "
                        f"outside tape of length {len(self.code)}"
                    )

        if not 0 <= instruction_pointer < len(self.code):
            raise ValueError(f"Instruction pointer {instruction_pointer} outside tape")
        self.instruction_pointer = instruction_pointer

    @classmethod
    def random(cls, rng: np.random.Generator, length: int = DEFAULT_GENE_LENGTH) -> 'Gene':
        """Fill a fresh tape with uniformly sampled instructions."""
        if length <= 0:
            raise ValueError(f"Gene length must be positive, got {length}")
        return cls(random_instruction(rng, length) for _ in range(length))

    @classmethod
    def from_opcodes(cls, *opcodes: Opcode) -> 'Gene':
        """Build a tape of non-jump opcodes (handy for forcing behavior)."""
        return cls(Instruction(op) for op in opcodes)

    def __len__(self) -> int:
        return len(self.code)

    def __repr__(self) -> str:
        return f"Gene(ip={self.instruction_pointer}, code=[{', '.join(str(i) for i in self.code)}])"

    def cycle(self) -> Instruction:
        """Return the instruction at the pointer, then advance the pointer."""
        instruction = self.code[self.instruction_pointer]
        self.instruction_pointer = (self.instruction_pointer + 1) % len(self.code)
        return instruction

    def jump(self, target: int):
        """Replace the pointer (taken jump)."""
        self.instruction_pointer = target % len(self.code)

    def mutate(self, rng: np.random.Generator) -> int:
        """
        Replace the instruction at one uniformly random locus.

        Returns:
            The mutated locus
        """
        locus = int(rng.integers(0, len(self.code)))
        self.code[locus] = random_instruction(rng, len(self.code))
        return locus

    def copy(self) -> 'Gene':
        # Instructions are frozen, a new list is enough
        return Gene(self.code, self.instruction_pointer)

    def to_list(self) -> List[str]:
        return [str(instruction) for instruction in self.code]
