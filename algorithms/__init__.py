from .math_tools import MathTools
from .plate_calculator import PlateCalculator
from .weight_converter import WeightConverter

__all__ = ["MathTools", "PlateCalculator", "WeightConverter"]
