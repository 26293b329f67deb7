import numpy as np


class MathTools:
    """Provides essential mathematical utilities for workout calculations."""

    EPL_COEFF: float = 0.0333
    PERCENTAGES: tuple[int, ...] = (95, 90, 85, 80, 75, 70, 60, 50)

    @staticmethod
    def clamp(value: float, min_value: float, max_value: float) -> float:
        """Clamp ``value`` to the inclusive range [min_value, max_value]."""
        if min_value > max_value:
            raise ValueError("min_value must not exceed max_value")
        return max(min_value, min(value, max_value))

    @staticmethod
    def brzycki_1rm(weight: float, reps: int) -> float:
        """Return the estimated one-rep max using the Brzycki formula."""
        if reps <= 0:
            raise ValueError("reps must be positive")
        if reps >= 37:
            raise ValueError("reps must be below 37")
        if weight < 0:
            raise ValueError("weight must be non-negative")
        return weight * (36 / (37 - reps))

    @classmethod
    def epley_1rm(cls, weight: float, reps: int, factor: float = 1.0) -> float:
        """Return the estimated one-rep max using the Epley formula."""
        if reps < 0:
            raise ValueError("reps must be non-negative")
        rep_term = min(reps, 8)
        return weight * (1 + cls.EPL_COEFF * rep_term) * factor

    @classmethod
    def percentage_table(cls, one_rep_max: float) -> list[tuple[int, float]]:
        """Return ``(percent, weight)`` training loads derived from a 1RM."""
        pct = np.array(cls.PERCENTAGES, dtype=float)
        loads = one_rep_max * pct / 100.0
        return [(int(p), float(w)) for p, w in zip(cls.PERCENTAGES, loads)]

    @staticmethod
    def volume(sets: list[tuple[int, float]]) -> float:
        """Compute training volume as the sum of reps times weight."""
        vol = 0.0
        for reps, weight in sets:
            vol += reps * weight
        return vol
