from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Reads ORM attributes, renders camelCase JSON keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str


class FieldErrorSchema(BaseModel):
    field: str
    msg: str


class ValidationErrorResponse(BaseModel):
    errors: list[FieldErrorSchema]
