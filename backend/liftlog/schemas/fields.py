from datetime import datetime, timezone
from typing import Annotated
from pydantic import AfterValidator, Field, StringConstraints


def _as_utc(value: datetime) -> datetime:
    # sqlite hands back naive datetimes; everything we store is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]
PosInt = Annotated[int, Field(ge=1)]
NonNegInt = Annotated[int, Field(ge=0)]
NonNegFloat = Annotated[float, Field(ge=0, le=1000)]
LabelStr = Annotated[str, StringConstraints(strip_whitespace=True, max_length=40)]
