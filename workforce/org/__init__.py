"""Organisation module — Department, SubUnit and Employee models."""

from workforce.org.models import Department, Employee, SubUnit

__all__ = ["Employee", "Department", "SubUnit"]
