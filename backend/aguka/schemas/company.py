from pydantic import BaseModel
from typing import Optional


class Company(BaseModel):
    id: int
    name: str
    address: Optional[str] = None
    industry: Optional[str] = None
    size: Optional[str] = None
    logo_url: Optional[str] = None

    class Config:
        from_attributes = True
