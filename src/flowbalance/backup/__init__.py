"""Full user data export and import (JSON backups)."""

from flowbalance.backup.exporter import EXPORT_VERSION, DataExporter
from flowbalance.backup.importer import DataImporter

__all__ = ["EXPORT_VERSION", "DataExporter", "DataImporter"]
