"""
Parser Models

Raw sheet payloads handed from the workbook reader to the sheet extractor.
"""

from typing import Any, List
from pydantic import BaseModel, Field


class SheetPayload(BaseModel):
    """Rectangular grid of cell values from one spreadsheet sheet"""
    name: str = Field(..., description="Sheet name as it appears in the workbook")
    position: int = Field(..., ge=1, description="1-based sheet order in the file")
    rows: List[List[Any]] = Field(default_factory=list, description="Row-major cells, header row included")

    def copy_rows(self) -> List[List[Any]]:
        """Return an isolated copy of the grid for one extraction job"""
        return [list(row) for row in self.rows]
