from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field


class QuotaCounter(BaseModel):
    date: dt.date = Field(description="Calendar day the count belongs to.")
    count: int = Field(default=0, ge=0, description="Artifacts written on that day.")

    def rolled_over(self, today: dt.date) -> QuotaCounter:
        """Return a counter valid for ``today``, resetting it when the day changed."""
        if self.date == today:
            return self
        return QuotaCounter(date=today, count=0)


class ArtifactSize(BaseModel):
    size_bytes: int = Field(description="Payload size in bytes.")
    size_mb: float = Field(description="Payload size in megabytes, two decimals.")
