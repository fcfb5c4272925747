"""Request and record models for picture metadata."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PictureRecord(BaseModel):
    """Metadata row linking an owner to a stored picture."""
    uid: str
    name: str
    desc: str = ""
    link: str  # storage key, i.e. the content digest
    order_id: str


class StoredPicture(PictureRecord):
    """A recorded picture as read back from the metadata store."""
    id: int | None = None
    create_time: datetime | str | None = None


class SaveRequest(BaseModel):
    """Body of ``POST /save``.

    Fields are optional at parse time so missing values produce a 400 rather
    than a validation error; see :meth:`to_record`.
    """
    model_config = ConfigDict(populate_by_name=True)

    uid: str | None = None
    name: str | None = None
    desc: str | None = None
    link: str | None = None
    order_id: str | int | None = Field(default=None, alias="orderId")

    def missing_fields(self) -> list[str]:
        missing = []
        for field in ("uid", "name", "link", "order_id"):
            value = getattr(self, field)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(field)
        return missing

    def to_record(self) -> PictureRecord:
        return PictureRecord(
            uid=self.uid,
            name=self.name,
            desc=self.desc or "",
            link=self.link,
            order_id=str(self.order_id),
        )
