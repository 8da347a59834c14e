from typing import Optional

from pydantic import BaseModel


class ContentResponse(BaseModel):
    url: Optional[str] = None
    content: str
    """Markdown-equivalent text of the page's main content; empty when nothing was found."""
    word_count: int
