from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model whose JSON form uses the browser client's camelCase keys."""

    # NaN and Infinity would serialize to JSON browsers cannot parse
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False
    )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
