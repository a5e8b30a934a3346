from typing import List
from pydantic import BaseModel, Field

class Addon(BaseModel):
    name: str
    price: float = 0.0
    description: str = ""

class OptionValue(BaseModel):
    name: str
    price: float = 0.0

class ServiceOption(BaseModel):
    type: str
    name: str
    required: bool = False
    values: List[OptionValue] = Field(default_factory=list)

class Service(BaseModel):
    """One bookable offering, parsed from a Markdown file. Identity is the title."""
    title: str = ""
    description: str = ""
    price: float = 0.0
    thumbnail: str = ""
    category: str = ""
    addons: List[Addon] = Field(default_factory=list)
    options: List[ServiceOption] = Field(default_factory=list)
