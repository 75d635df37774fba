"""Simulated annealing with a tunneling acceptance channel.

The engine minimizes an energy function over an opaque state type. Callers
provide:
- `neighbor(state, rng)`: a randomly perturbed copy of `state`
- `energy(state)`: cost to minimize

An uphill move of size dE at temperature T is accepted with probability

    P = 1 - (1 - exp(-dE / T)) * (1 - exp(-sqrt(dE) / (gamma * T)))

The first factor is the classic thermal channel. The second has a heavier
tail and lets the search hop over tall but narrow barriers; `gamma` scales
it (gamma -> 0 behaves like plain SA).

States are never mutated by the engine, so neighbors must return new
objects. The best state seen is always returned, never a worse one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, Protocol, TypeVar

import math
import random


TState = TypeVar("TState")


class NeighborFn(Protocol[TState]):
    def __call__(self, state: TState, rng: random.Random) -> TState:  # pragma: no cover
        """Return a randomly sampled neighbor of `state`."""


class EnergyFn(Protocol[TState]):
    def __call__(self, state: TState) -> float:  # pragma: no cover
        """Return energy/cost to MINIMIZE."""


ProgressFn = Callable[[int, float, float, float], None]  # step, temperature, current_e, best_e


@dataclass(frozen=True)
class AnnealConfig:
    """Annealing schedule.

    Attributes:
        steps: Iterations per pass.
        t_start: Initial temperature.
        t_end: Final temperature (> 0).
        gamma: Tunneling strength.
        reheats: Extra passes restarted from the best state so far.
        patience: Stop a pass after this many steps without improving the
            best energy (None disables).
        seed: RNG seed, used when no rng is passed to `anneal`.
    """

    steps: int = 2_000
    t_start: float = 2.0
    t_end: float = 0.05
    gamma: float = 1.5
    reheats: int = 0
    patience: Optional[int] = None
    seed: Optional[int] = 42


@dataclass
class AnnealResult(Generic[TState]):
    best_state: TState
    best_energy: float
    initial_energy: float
    best_step: int
    accepted_moves: int
    total_steps: int

    @property
    def improved(self) -> bool:
        return self.best_energy < self.initial_energy


def _temperature(step: int, steps: int, t_start: float, t_end: float) -> float:
    """Geometric cooling from t_start to t_end."""

    if steps <= 1:
        return t_end
    frac = step / (steps - 1)
    return t_start * ((t_end / t_start) ** frac)


def _accept_prob(delta_e: float, temperature: float, gamma: float) -> float:
    if temperature <= 0:
        return 0.0
    # overflow guard: exp of a large negative number is just 0
    p_thermal = math.exp(-min(delta_e / temperature, 700.0))
    g = max(gamma, 1e-9)
    p_tunnel = math.exp(-min(math.sqrt(delta_e) / (g * temperature), 700.0))
    return 1.0 - (1.0 - p_thermal) * (1.0 - p_tunnel)


def anneal(
    initial_state: TState,
    neighbor: NeighborFn[TState],
    energy: EnergyFn[TState],
    config: AnnealConfig = AnnealConfig(),
    rng: Optional[random.Random] = None,
    progress: Optional[ProgressFn] = None,
) -> AnnealResult[TState]:
    rng = rng if rng is not None else random.Random(config.seed)

    initial_e = energy(initial_state)
    best = initial_state
    best_e = initial_e
    best_step = 0
    accepted_moves = 0
    total_steps = 0

    for pass_idx in range(int(config.reheats) + 1):
        current = best
        current_e = best_e
        since_improve = 0

        for step in range(int(config.steps)):
            t = _temperature(step, int(config.steps), config.t_start, config.t_end)
            cand = neighbor(current, rng)
            cand_e = energy(cand)
            total_steps += 1

            if cand_e <= current_e or rng.random() < _accept_prob(cand_e - current_e, t, config.gamma):
                current = cand
                current_e = cand_e
                accepted_moves += 1

            if current_e < best_e:
                best = current
                best_e = current_e
                best_step = pass_idx * int(config.steps) + step
                since_improve = 0
            else:
                since_improve += 1

            if progress is not None:
                progress(pass_idx * int(config.steps) + step, t, current_e, best_e)

            if config.patience is not None and since_improve >= int(config.patience):
                break

    return AnnealResult(
        best_state=best,
        best_energy=best_e,
        initial_energy=initial_e,
        best_step=best_step,
        accepted_moves=accepted_moves,
        total_steps=total_steps,
    )
