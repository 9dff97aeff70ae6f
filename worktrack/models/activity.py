"""Comment and file attachment models."""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict
from pydantic import BaseModel, Field

from ..utils.datetime_utils import utc_now


class FileCategory(str, Enum):
    """Category assigned to an uploaded order file."""
    ASSIGNMENT_BRIEF = "assignment_brief"
    CODE_SOLUTION = "code_solution"
    ARCHIVE_ZIP = "archive_zip"
    DOCUMENT = "document"
    OTHER = "other"

    @property
    def label(self) -> str:
        return FILE_CATEGORY_LABELS[self]


FILE_CATEGORY_LABELS: Dict[FileCategory, str] = {
    FileCategory.ASSIGNMENT_BRIEF: "Assignment Brief",
    FileCategory.CODE_SOLUTION: "Code Solution",
    FileCategory.ARCHIVE_ZIP: "ZIP Archive",
    FileCategory.DOCUMENT: "Document",
    FileCategory.OTHER: "Other",
}


class Comment(BaseModel):
    """A comment on an order. Internal comments are hidden from the order's client."""
    id: str
    order_id: str
    author_id: Optional[str] = None  # author may have been deleted
    content: str = ""
    is_internal: bool = False
    created_at: datetime = Field(default_factory=utc_now)


class OrderFile(BaseModel):
    """Metadata row for a file stored in the order-files bucket."""
    id: str
    order_id: str
    uploaded_by: Optional[str] = None
    file_name: str
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    file_category: Optional[FileCategory] = FileCategory.OTHER
    storage_path: str
    created_at: datetime = Field(default_factory=utc_now)
