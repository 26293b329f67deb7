from typing import Iterable


class PlateCalculator:
    """Barbell plate math for loading a target weight or reading a loaded bar."""

    KG_PLATES: tuple[float, ...] = (25.0, 20.0, 15.0, 10.0, 5.0, 2.5, 1.25)
    LBS_PLATES: tuple[float, ...] = (45.0, 35.0, 25.0, 10.0, 5.0, 2.5)
    KG_BARS: tuple[float, ...] = (20.0, 15.0, 10.0, 0.0)
    LBS_BARS: tuple[float, ...] = (45.0, 35.0, 0.0)

    @classmethod
    def plates_for(cls, unit: str) -> tuple[float, ...]:
        return cls.LBS_PLATES if unit == "lbs" else cls.KG_PLATES

    @classmethod
    def bars_for(cls, unit: str) -> tuple[float, ...]:
        return cls.LBS_BARS if unit == "lbs" else cls.KG_BARS

    @classmethod
    def default_bar(cls, unit: str) -> float:
        return cls.bars_for(unit)[0]

    @classmethod
    def plates_per_side(
        cls,
        target: float,
        bar: float | None = None,
        unit: str = "kg",
        plates: Iterable[float] | None = None,
    ) -> tuple[list[float], float]:
        """Return the plates for one side of the bar and the unloadable remainder.

        Plates are picked greedily from heaviest to lightest. The remainder is
        the total weight (both sides) that cannot be made with the plates.
        """
        bar_weight = cls.default_bar(unit) if bar is None else bar
        if target <= bar_weight:
            return [], 0.0
        available = sorted(plates if plates is not None else cls.plates_for(unit), reverse=True)
        remaining = (target - bar_weight) / 2.0
        result: list[float] = []
        for plate in available:
            if plate <= 0:
                continue
            while remaining >= plate - 1e-9:
                result.append(plate)
                remaining -= plate
        leftover = round(max(remaining, 0.0) * 2, 4)
        return result, leftover

    @staticmethod
    def total_weight(bar: float, plates_one_side: Iterable[float]) -> float:
        """Return the weight of a bar loaded symmetrically with ``plates_one_side``."""
        return bar + sum(plates_one_side) * 2
