"""Problem-agnostic optimization engines used by the scheduler."""

from .annealing import AnnealConfig, AnnealResult, anneal

__all__ = ["AnnealConfig", "AnnealResult", "anneal"]
