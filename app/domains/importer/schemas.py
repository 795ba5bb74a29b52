from pydantic import BaseModel
import uuid


class ImportedBookSummary(BaseModel):
    book_id: uuid.UUID
    book_name: str
    book_slug: str
    chapters_created: int
    pages_created: int


class ImportResponse(BaseModel):
    success: bool = True
    message: str
    book: ImportedBookSummary
