from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, func
from sqlalchemy.orm import relationship
from .base import Base


class ShippingZone(Base):
    """一組共用運費與配送時效的郵遞區號。"""
    __tablename__ = "shipping_zones"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    rate = Column(Numeric(10, 2), nullable=False)
    free_shipping_threshold = Column(Numeric(10, 2), nullable=True)
    estimated_days = Column(String(50), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    pincodes = relationship("ShippingZonePincode", back_populates="zone", cascade="all, delete-orphan")


class ShippingZonePincode(Base):
    __tablename__ = "shipping_zone_pincodes"
    __table_args__ = (UniqueConstraint("zone_id", "pincode", name="uq_zone_pincode"),)

    id = Column(String(36), primary_key=True)
    zone_id = Column(String(36), ForeignKey("shipping_zones.id", ondelete="CASCADE"), nullable=False)
    pincode = Column(String(10), nullable=False, index=True)
    city = Column(String(255), nullable=True)
    state = Column(String(255), nullable=True)

    zone = relationship("ShippingZone", back_populates="pincodes")


class NonServiceablePincode(Base):
    """停止配送的郵遞區號，優先於配送區域判斷。"""
    __tablename__ = "non_serviceable_pincodes"

    id = Column(String(36), primary_key=True)
    pincode = Column(String(10), nullable=False, unique=True)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
