"""Pipeline steps for item export."""

from .convert import ConvertStep
from .inject import InjectStep
from .load import LoadStep
from .sanitize import SanitizeStep
from .save import SaveStep

__all__ = [
    "ConvertStep",
    "InjectStep",
    "LoadStep",
    "SanitizeStep",
    "SaveStep",
]
