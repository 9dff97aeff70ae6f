from .order_store import OrderStore
from .files import FileService, FileUpload
from .orders import OrderService, generate_order_code
from .reports import ReportService, SheetRange

__all__ = [
    "OrderStore",
    "FileService",
    "FileUpload",
    "OrderService",
    "generate_order_code",
    "ReportService",
    "SheetRange",
]
