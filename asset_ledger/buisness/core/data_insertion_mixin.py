"""
Generic data insertion mixin for the ledger's SQLAlchemy models.
Provides from_dict and to_dict so managers and reports can exchange plain records.
"""

from datetime import date, datetime
from sqlalchemy import inspect

# Columns managed by the base model or the version counter, never taken from input
MANAGED_FIELDS = ('id', 'created_at', 'updated_at', 'version')


class DataInsertionMixin:
    """
    Mixin that provides generic data insertion capabilities for SQLAlchemy models

    This mixin adds:
    - from_dict(): Create model instance from dictionary
    - to_dict(): Convert model instance to plain dictionary
    - apply_dict(): Assign known columns from a dictionary onto an instance
    """

    @classmethod
    def column_names(cls):
        return {c.key for c in inspect(cls).columns}

    @classmethod
    def from_dict(cls, data_dict, skip_fields=None):
        """
        Create a model instance from a dictionary

        Args:
            data_dict (dict): Dictionary containing model data
            skip_fields (list, optional): Fields to skip during creation

        Returns:
            Model instance (not saved to database)
        """
        skip = set(skip_fields or []) | set(MANAGED_FIELDS)
        columns = cls.column_names()

        filtered_data = {
            key: value for key, value in data_dict.items()
            if key in columns and key not in skip
        }
        return cls(**filtered_data)

    def apply_dict(self, data_dict, skip_fields=None):
        """
        Assign column values from a dictionary onto this instance

        Args:
            data_dict (dict): Column values to assign
            skip_fields (list, optional): Fields to leave untouched

        Returns:
            list: Names of the columns whose value changed
        """
        skip = set(skip_fields or []) | set(MANAGED_FIELDS)
        columns = self.column_names()
        changed = []
        for key, value in data_dict.items():
            if key not in columns or key in skip:
                continue
            if getattr(self, key) != value:
                setattr(self, key, value)
                changed.append(key)
        return changed

    def to_dict(self, include_relationships=False, include_audit_fields=True):
        """
        Convert model instance to dictionary

        Args:
            include_relationships (bool): Whether to include relationship data
            include_audit_fields (bool): Whether to include created_at/updated_at

        Returns:
            dict: Dictionary representation of the model
        """
        result = {}
        mapper = inspect(self.__class__)

        for column in mapper.columns:
            if not include_audit_fields and column.key in ('created_at', 'updated_at'):
                continue
            value = getattr(self, column.key)
            if isinstance(value, (datetime, date)):
                result[column.key] = value.isoformat()
            else:
                result[column.key] = value

        if include_relationships:
            for relationship in mapper.relationships:
                if relationship.key in result or relationship.uselist:
                    continue
                related_obj = getattr(self, relationship.key)
                if related_obj is None:
                    result[relationship.key] = None
                elif hasattr(related_obj, 'to_dict'):
                    result[relationship.key] = related_obj.to_dict()
                else:
                    result[relationship.key] = str(related_obj)

        return result
