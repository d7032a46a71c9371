"""Pydantic models for the emitted JSON lines."""

from pydantic import BaseModel, Field, RootModel


class DeclarationRecord(BaseModel):
    """Name, verbatim source and origin of one declaration."""

    name: str = Field(description="Declared name")
    source: str = Field(description="Verbatim source text, empty if unrecoverable")
    filename: str = Field(description="Canonical location, <path>:<line>")
    alias: str | None = Field(default=None, description="Alias name, typedefs only")

    def to_line(self) -> str:
        return self.model_dump_json(exclude_none=True)


class EnumValuesRecord(RootModel[dict[str, dict[str, int]]]):
    """{<enumName>: {<memberName>: <value>, ...}}"""

    @classmethod
    def build(cls, enum_name: str, values: dict[str, int]) -> "EnumValuesRecord":
        return cls({enum_name: values})

    def to_line(self) -> str:
        return self.model_dump_json()


class StructRelationsRecord(RootModel[dict[str, list[str]]]):
    """{<structName>: [<relatedName>, ...]}"""

    @classmethod
    def build(cls, struct_name: str, related: list[str]) -> "StructRelationsRecord":
        return cls({struct_name: related})

    def to_line(self) -> str:
        return self.model_dump_json()
