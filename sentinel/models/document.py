from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class User(BaseModel):
    """Active subscriber whose topics drive discovery"""
    id: int
    username: str
    is_active: bool = True


class Topic(BaseModel):
    """Interest profile entry owned by a single user"""
    id: int
    user_id: int
    name: str
    query: str = Field(..., min_length=1, description="arXiv search_query expression")
    enabled: bool = True


class Document(BaseModel):
    """Document as discovered from the catalog, before scoring"""
    # Natural key: catalog identifier without revision suffix
    document_id: str = Field(..., min_length=1)

    # Content
    title: str = Field(..., min_length=1)
    abstract: str = Field(..., min_length=1)

    # Metadata
    authors: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    published_date: Optional[datetime] = None

    # Links
    pdf_url: str = ""
    abs_url: str = ""


class StoredDocument(Document):
    """Document plus the scoring outcome written to the relational store"""
    summary: Optional[str] = None
    relevance_score: float = Field(0.0, ge=0.0, le=1.0)
    content_hash: str
    collected_for_user_id: int
    summary_model: Optional[str] = None
    summary_generated_at: datetime = Field(default_factory=datetime.utcnow)
