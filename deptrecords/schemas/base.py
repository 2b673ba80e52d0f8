from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON в camelCase, в Python snake_case; на входе принимаются оба варианта."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )

    def dump(self) -> dict:
        return self.model_dump(by_alias=True)
