"""
Shared base for stored records.
"""
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class Record(BaseModel):
    """
    A JSON-serializable record kept in one of the store's collections.

    Records are written with camelCase keys; snake_case names are accepted
    on input as well. Documents exported from the old Mongo backend carry
    ``_id`` instead of ``id``, which is mapped on the way in.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=False,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _map_mongo_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and "id" not in data and "_id" in data:
            data = {**data, "id": str(data["_id"])}
        return data

    def to_document(self) -> dict[str, Any]:
        """Serialize to the stored JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
