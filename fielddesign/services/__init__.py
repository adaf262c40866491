"""Business services."""
from fielddesign.services.design_service import DesignService
from fielddesign.services.file_service import FileService
from fielddesign.services.export_service import ExportService

__all__ = ["DesignService", "FileService", "ExportService"]
