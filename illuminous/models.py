from sqlalchemy import Column, Integer, String, Numeric, JSON, CheckConstraint, Index

from .database import Base


class ProductRow(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)               # 💰 exact money
    image = Column(String(255), nullable=False, default="")
    available_quantity = Column(Integer, nullable=False, default=0)  # 📦 supply-side upper bound
    sizes = Column(JSON, nullable=False, default=list)
    features = Column(JSON, nullable=False, default=list)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_nonneg"),
        CheckConstraint("available_quantity >= 0", name="ck_products_available_nonneg"),
        Index("ix_products_name", "name"),
    )
