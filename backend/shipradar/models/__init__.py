"""Import all models to register them with SQLAlchemy metadata."""
from shipradar.models.base import Base
from shipradar.models.custom_field import CustomField, CustomFieldEntry
