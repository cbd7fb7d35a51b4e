"""Service layer for Catalog Service"""

from .action_service import ActionService
from .attribute_service import AttributeService
from .category_service import CategoryService
from .consistency_guard import CategoryPath, ConsistencyGuard
from .inheritance_resolver import InheritanceResolver
from .resolution_service import ResolutionService
from .settings_table import SettingFlag, SettingsTable

__all__ = [
    "ActionService",
    "AttributeService",
    "CategoryService",
    "CategoryPath",
    "ConsistencyGuard",
    "InheritanceResolver",
    "ResolutionService",
    "SettingFlag",
    "SettingsTable",
]
