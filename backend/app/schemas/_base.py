from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# JSON on the wire is camelCase; Python attributes stay snake_case
class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
