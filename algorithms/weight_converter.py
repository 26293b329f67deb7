class WeightConverter:
    """Utility for converting between kg and lbs."""

    KG_TO_LB = 2.20462

    @staticmethod
    def kg_to_lb(kg: float) -> float:
        return round(kg * WeightConverter.KG_TO_LB, 2)

    @staticmethod
    def lb_to_kg(lb: float) -> float:
        return round(lb / WeightConverter.KG_TO_LB, 2)

    @staticmethod
    def from_canonical(kg: float, unit: str) -> float:
        """Return ``kg`` expressed in ``unit`` without rounding."""
        if unit == "lbs":
            return kg * WeightConverter.KG_TO_LB
        return kg

    @staticmethod
    def to_canonical(value: float, unit: str) -> float:
        """Return a weight entered in ``unit`` as kilograms."""
        if unit == "lbs":
            return value / WeightConverter.KG_TO_LB
        return value

    @staticmethod
    def display(kg: float, unit: str) -> str:
        return f"{WeightConverter.from_canonical(kg, unit):.1f}"

    @staticmethod
    def unit_label(unit: str) -> str:
        return "lbs" if unit == "lbs" else "kg"
