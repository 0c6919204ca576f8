from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, Numeric, String, Text, func
from sqlalchemy.orm import relationship
from .base import Base


class Product(Base):
    __tablename__ = "product"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    base_price = Column(Numeric(10, 2), nullable=False)
    sale_price = Column(Numeric(10, 2), nullable=True)
    images = Column(JSON, nullable=True)
    stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    variants = relationship("ProductVariant", back_populates="product", cascade="all, delete-orphan")
