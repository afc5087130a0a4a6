from .model import FeeModel

__all__ = ["FeeModel"]
