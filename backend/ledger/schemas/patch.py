"""Base for partial-update bodies."""

from typing import ClassVar

from pydantic import BaseModel, model_validator


class PatchModel(BaseModel):
    """Update body whose omitted fields are left untouched.

    Fields listed in ``non_nullable`` may be omitted but not sent as ``null``,
    since the columns behind them are ``NOT NULL``.
    """

    non_nullable: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def _reject_nulls(self) -> "PatchModel":
        nulls = [
            name
            for name in self.non_nullable
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return self
