from sqlalchemy import Boolean, Column, String

from leadintake.models.base import Base


class Country(Base):
    """Reference data: where the product operates and where GDPR applies."""

    __tablename__ = "crm_countries"
    country_code = Column(String(2), primary_key=True)
    country_name = Column(String(100), nullable=False)
    is_operational = Column(Boolean, nullable=False, server_default="false")
    country_gdpr = Column(Boolean, nullable=False, server_default="false")
