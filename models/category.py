from sqlalchemy import Column, Integer, String

from core.database import Base


class Category(Base):
    """Event category. Seeded out of band, read-only through the API."""
    __tablename__ = "eventcategories"

    category_id = Column(Integer, primary_key=True, index=True)
    category_name = Column(String(100), unique=True, nullable=False)
