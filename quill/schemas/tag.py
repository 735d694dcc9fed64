from pydantic import BaseModel, Field


class TagCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=64)
