"""GSAT satellite subscription tables."""

from __future__ import annotations

from sqlalchemy import Column, Float, Integer, Text

from ..db.session import Base


class GsatCustomer(Base):
    __tablename__ = "gsat_customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False)
    serial_number = Column(Text, nullable=True, index=True)
    cca_number = Column(Text, nullable=True, index=True)
    box_number = Column(Text, nullable=True)
    account_number = Column(Text, nullable=True, index=True)
    plan = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="Active")
    address = Column(Text, nullable=True)
    date_of_activation = Column(Text, nullable=True)
    date_of_purchase = Column(Text, nullable=True)
    price = Column(Float, nullable=True)
    supplier = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    def match_fields(self) -> tuple[str | None, str | None, str | None, str | None]:
        return (self.serial_number, self.account_number, self.box_number, self.name)


class GsatActivation(Base):
    __tablename__ = "gsat_activations"

    id = Column(Integer, primary_key=True, index=True)
    serial_number = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    address = Column(Text, nullable=False)
    contact_number = Column(Text, nullable=False)
    dealer = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)
