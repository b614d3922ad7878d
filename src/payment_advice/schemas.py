"""JSON bodies keyed in camelCase, the casing the existing callers read."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Response body whose fields are written as ``fileUrl``, ``pauseUntil`` and so on."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    def model_dump(self, **kwargs: Any) -> dict[str, Any]:
        kwargs.setdefault("by_alias", True)
        return super().model_dump(**kwargs)
