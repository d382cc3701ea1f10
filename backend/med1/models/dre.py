"""
DRE (income statement) models.

Fact entries are P&L line items keyed by period, product and cost center.
Pivot snapshots store a saved pivot configuration together with its result.
"""

import uuid

from sqlalchemy import Column, String, Integer, Float, Text, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base, JSONType, utcnow


class Product(Base):
    __tablename__ = "products"

    sku = Column(String(100), primary_key=True)
    description = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class CostCenter(Base):
    __tablename__ = "cost_centers"

    # Six-digit, zero-padded
    code = Column(String(20), primary_key=True)
    description = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class FactEntry(Base):
    __tablename__ = "fact_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    period = Column(String(20), nullable=False, index=True)
    version = Column(String(50), nullable=True, index=True)
    scenario = Column(String(50), nullable=True)
    bu = Column(String(100), nullable=True, index=True)
    region = Column(String(100), nullable=True)
    channel = Column(String(100), nullable=True)
    product_sku = Column(String(100), ForeignKey("products.sku"), nullable=False, index=True)
    customer = Column(String(255), nullable=True)
    cost_center_code = Column(String(20), ForeignKey("cost_centers.code"), nullable=False, index=True)
    gl_account = Column(String(100), nullable=True)
    pnl_line = Column(String(255), nullable=True)
    value = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    product = relationship("Product")
    cost_center = relationship("CostCenter")


class PivotSnapshot(Base):
    __tablename__ = "pivot_snapshots"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    config = Column(JSONType, nullable=False)
    data = Column(JSONType, nullable=False)
    totals = Column(JSONType, nullable=False)
    snapshot_metadata = Column("metadata", JSONType, nullable=False)
    created_by = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
