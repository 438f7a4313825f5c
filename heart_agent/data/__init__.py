from heart_agent.data.cleaner import Cleaner, CleaningResult, CleaningRules
from heart_agent.data.loader import DatasetLoader
from heart_agent.data.partitioner import stratified_split
from heart_agent.data.schema import ColumnSpec, Role, Schema

__all__ = [
    "Cleaner",
    "CleaningResult",
    "CleaningRules",
    "ColumnSpec",
    "DatasetLoader",
    "Role",
    "Schema",
    "stratified_split",
]
