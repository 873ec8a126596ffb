from typing import List, Optional, Union

from pydantic import BaseModel

ELLIPSIS = "…"

PageEntry = Union[int, str]


class PageButton(BaseModel):
    label: str
    page: Optional[int] = None
    disabled: bool = False
    selected: bool = False


class PaginationControl(BaseModel):
    previous: PageButton
    pages: List[PageButton]
    next: PageButton


def page_entries(current_page: int, total_pages: int) -> List[PageEntry]:
    """
    Page numbers to show around ``current_page``, with ``ELLIPSIS`` marking
    gaps. Empty when there is a single page or none.
    """
    if total_pages <= 1:
        return []
    entries: List[PageEntry] = []
    if current_page > 2:
        entries.append(1)
        if current_page > 3:
            entries.append(ELLIPSIS)
    for page in range(max(1, current_page - 1), min(total_pages, current_page + 1) + 1):
        entries.append(page)
    if current_page < total_pages - 1:
        if current_page < total_pages - 2:
            entries.append(ELLIPSIS)
        entries.append(total_pages)
    return entries


def build_pagination(current_page: int, total_pages: int) -> Optional[PaginationControl]:
    entries = page_entries(current_page, total_pages)
    if not entries:
        return None
    pages = []
    for entry in entries:
        if entry == ELLIPSIS:
            pages.append(PageButton(label=ELLIPSIS, disabled=True))
        else:
            is_current = entry == current_page
            pages.append(PageButton(label=str(entry), page=entry, disabled=is_current, selected=is_current))
    return PaginationControl(
        previous=PageButton(label="‹", page=current_page - 1, disabled=current_page <= 1),
        pages=pages,
        next=PageButton(label="›", page=current_page + 1, disabled=current_page >= total_pages),
    )
