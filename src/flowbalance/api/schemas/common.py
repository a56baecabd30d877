"""Shared schema base classes and field types."""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from flowbalance.core.timezone import to_utc_naive

# Incoming timestamps are normalized to naive UTC
UtcDateTime = Annotated[datetime, AfterValidator(to_utc_naive)]


class ApiModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
