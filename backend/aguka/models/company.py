from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from .base import BaseModel


class Company(BaseModel):
    __tablename__ = "companies"

    name = Column(String, nullable=False, index=True)
    address = Column(String, nullable=True)
    industry = Column(String, nullable=True)
    size = Column(String, nullable=True)
    logo_url = Column(String, nullable=True)

    employees = relationship("User", back_populates="company")
