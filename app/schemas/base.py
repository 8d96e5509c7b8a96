"""
Shared pydantic base for request/response bodies.

Fields are declared in snake_case and travel as camelCase on the wire;
either spelling is accepted on input.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(CamelModel):
    message: str
