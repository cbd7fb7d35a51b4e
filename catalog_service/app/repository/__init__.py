"""Repository layer for Catalog Service"""

from .action_repository import ActionAssignment, ActionRepository
from .attribute_repository import AttributeRepository
from .category_repository import CategoryRepository
from .setting_repository import SettingRepository

__all__ = [
    "CategoryRepository",
    "AttributeRepository",
    "ActionRepository",
    "ActionAssignment",
    "SettingRepository",
]
