"""
商品規格模型
一個商品可有多個可購買的尺寸／顏色組合，各自管理價格與庫存
"""
from sqlalchemy import Boolean, Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship
from .base import Base


class ProductVariant(Base):
    """商品規格（例如：M / 黑色）"""
    __tablename__ = "product_variant"

    id = Column(String(36), primary_key=True)
    product_id = Column(String(36), ForeignKey("product.id", ondelete="CASCADE"), nullable=False)
    size = Column(String(50), nullable=True)
    color = Column(String(50), nullable=True)
    color_hex = Column(String(7), nullable=True)
    price = Column(Numeric(10, 2), nullable=True)  # 空值表示沿用商品價格
    stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    product = relationship("Product", back_populates="variants")
