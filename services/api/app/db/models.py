from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class Drink(Base):
    __tablename__ = "drinks"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    slug: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(String, nullable=True)
    image: Mapped[str | None] = mapped_column(String, nullable=True)

    # Free text as printed on the can, e.g. "0.5 l".
    size: Mapped[str | None] = mapped_column(String, nullable=True)
    is_sugar_free: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    sale_price: Mapped[int] = mapped_column(Integer, nullable=False)
    recycling_fee: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    purchase_price: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class Package(Base):
    __tablename__ = "packages"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    slug: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(String, nullable=True)
    image: Mapped[str | None] = mapped_column(String, nullable=True)
    category: Mapped[str | None] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)

    sizes: Mapped[list[PackageSize]] = relationship(
        back_populates="package", order_by="PackageSize.size", cascade="all, delete-orphan"
    )
    drinks: Mapped[list[Drink]] = relationship(
        secondary="package_drinks", order_by="Drink.slug", viewonly=True
    )


class PackageSize(Base):
    __tablename__ = "package_sizes"
    __table_args__ = (UniqueConstraint("package_id", "size"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    package_id: Mapped[str] = mapped_column(ForeignKey("packages.id"), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)

    # Multiplier applied to the summed drink price, e.g. 0.95 for 5% off.
    discount: Mapped[float | None] = mapped_column(Float, nullable=True)
    # Price is rounded up to a multiple of this many kroner.
    round_up_or_down: Mapped[int | None] = mapped_column(Integer, nullable=True)

    package: Mapped[Package] = relationship(back_populates="sizes")


class PackageDrink(Base):
    __tablename__ = "package_drinks"

    package_id: Mapped[str] = mapped_column(ForeignKey("packages.id"), primary_key=True)
    drink_id: Mapped[str] = mapped_column(ForeignKey("drinks.id"), primary_key=True)


class ShopSession(Base):
    __tablename__ = "sessions"

    session_id: Mapped[str] = mapped_column(String, primary_key=True)
    allow_cookies: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    basket_details: Mapped[dict] = mapped_column(JSON, nullable=False)
    temporary_selections: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    session_id: Mapped[str] = mapped_column(String, index=True, nullable=False)

    status: Mapped[str] = mapped_column(String, nullable=False)
    basket_details: Mapped[dict] = mapped_column(JSON, nullable=False)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String, nullable=False, default="DKK")

    payment_provider: Mapped[str | None] = mapped_column(String, nullable=True)
    payment_id: Mapped[str | None] = mapped_column(String, nullable=True)
    payment_link: Mapped[str | None] = mapped_column(String, nullable=True)
    payment_details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    order_confirmation_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    order_confirmation_sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class EventLog(Base):
    __tablename__ = "event_log"

    id: Mapped[str] = mapped_column(String, primary_key=True)

    entity_type: Mapped[str] = mapped_column(String, nullable=False)
    entity_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    event_type: Mapped[str] = mapped_column(String, nullable=False)
    event_payload_json: Mapped[dict] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
