from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from formconfig.db.database import Base


class FormConfigurationRecord(Base):
    """
    Stored form configuration.
    The whole schema document lives in `document` as JSON text; the other
    columns are denormalised copies used for listing and lookup.
    """
    __tablename__ = "form_configurations"
    __table_args__ = (
        Index("ix_form_configurations_is_active", "is_active"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    template_name = Column(String(255), nullable=False, default="Default")
    version = Column(String(20), nullable=False, default="1.0")
    is_draft = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    document = Column(Text, nullable=False)
    created_by = Column(String(255), default="system")
    updated_by = Column(String(255), default="system")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    templates = relationship("FormTemplateRecord", back_populates="form_configuration")


class FormTemplateRecord(Base):
    """Ticket template pointing at the form configuration it renders with."""
    __tablename__ = "form_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    description = Column(Text)
    form_configuration_id = Column(Integer, ForeignKey("form_configurations.id", ondelete="CASCADE"), nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    form_configuration = relationship("FormConfigurationRecord", back_populates="templates")
