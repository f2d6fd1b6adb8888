from datetime import datetime

from sqlalchemy import CheckConstraint, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from autocoder.db.base import Base


class Unit(Base):
    __tablename__ = "units"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    mod_id: Mapped[int] = mapped_column(ForeignKey("mods.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_name: Mapped[str] = mapped_column(String(255), nullable=False)
    ini_name: Mapped[str] = mapped_column(String(300), nullable=False)
    ini_content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    mod: Mapped["ModFolder"] = relationship("ModFolder", back_populates="units")
    assets: Mapped[list["UnitAsset"]] = relationship(
        "UnitAsset", back_populates="unit", cascade="all, delete-orphan", lazy="selectin", order_by="UnitAsset.id",
    )

    __table_args__ = (
        UniqueConstraint("mod_id", "position", name="uq_units_mod_position"),
        UniqueConstraint("mod_id", "unit_name", name="uq_units_mod_unit_name"),
    )


class UnitAsset(Base):
    __tablename__ = "unit_assets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    unit_id: Mapped[str] = mapped_column(ForeignKey("units.id", ondelete="CASCADE"), nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(10), nullable=False)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    data_url: Mapped[str] = mapped_column(Text, nullable=False)

    unit: Mapped["Unit"] = relationship("Unit", back_populates="assets")

    __table_args__ = (CheckConstraint("kind IN ('image', 'sound')", name="ck_unit_assets_kind"),)
