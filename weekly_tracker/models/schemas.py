from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, List, Optional


class EntryIn(BaseModel):
    # Unknown keys are kept so entries round-trip unchanged
    model_config = ConfigDict(extra="allow")

    # Client-assigned and opaque: any JSON value
    id: Any = None
    projectId: Optional[str] = ""
    percentage: Any = ""


class SaveTimesheetRequest(BaseModel):
    weekKey: Optional[str] = None
    entries: Optional[List[EntryIn]] = None

    def entry_dicts(self) -> List[Dict[str, Any]]:
        return [entry.model_dump(exclude_unset=True) for entry in self.entries or []]
