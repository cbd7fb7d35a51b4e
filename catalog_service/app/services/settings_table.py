"""Settings table resolution: filter attributes by a required/column/excluded flag"""

from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from ..models.action import Action, ActionAttributeSetting
from ..models.attribute import Attribute
from ..repository.setting_repository import SettingRepository


class SettingFlag(str, Enum):
    REQUIRED = "required"
    COLUMN = "column"
    EXCLUDED = "excluded"

    def read(self, setting: ActionAttributeSetting) -> bool:
        if self is SettingFlag.REQUIRED:
            return setting.required
        if self is SettingFlag.COLUMN:
            return setting.column
        return setting.excluded


class SettingsTable:
    """Lookup of ActionAttributeSetting rows keyed by (attribute_id, action_id).

    Rows are loaded once per (attribute set, action) and reused for the three
    flags while this instance lives, i.e. for one resolution.
    """

    def __init__(self, db: AsyncSession):
        self.repository = SettingRepository(db)
        self._rows: Dict[
            Tuple[Optional[int], frozenset], Dict[int, ActionAttributeSetting]
        ] = {}

    async def rows_for(
        self, attribute_ids: Sequence[int], action: Optional[Action]
    ) -> Dict[int, ActionAttributeSetting]:
        action_id = action.id if action is not None else None
        key = (action_id, frozenset(attribute_ids))
        if key not in self._rows:
            settings = await self.repository.get_for_attributes(
                list(attribute_ids), action_id
            )
            self._rows[key] = {setting.attribute_id: setting for setting in settings}
        return self._rows[key]

    async def filter_by_flag(
        self,
        attributes: Sequence[Attribute],
        flag: SettingFlag,
        action: Optional[Action] = None,
    ) -> List[Attribute]:
        """Attributes whose setting for ``action`` has ``flag`` set.

        ``action=None`` reads the action-less rows. A missing row counts as
        all flags false. Input order is preserved.
        """
        if not attributes:
            return []
        rows = await self.rows_for([a.id for a in attributes], action)
        return [
            attribute
            for attribute in attributes
            if attribute.id in rows and flag.read(rows[attribute.id])
        ]

    def clear(self) -> None:
        self._rows.clear()
