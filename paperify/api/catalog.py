"""
Curriculum catalog routes. All read-only; missing data yields empty lists.
"""
from fastapi import APIRouter, Depends

from paperify.api.deps import get_catalog, get_settings
from paperify.core.config import Settings
from paperify.features.catalog.service import (
    CatalogStore,
    all_subjects,
    chapters_for_subject,
    subjects_for_class,
    subjects_for_group,
    topics_for_chapter,
)

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/data/{board}")
async def board_data(board: str, catalog: CatalogStore = Depends(get_catalog)):
    return catalog.load_board(board)


@router.get("/books/all")
async def all_books(
    catalog: CatalogStore = Depends(get_catalog),
    settings: Settings = Depends(get_settings),
):
    return {"books": all_subjects(catalog, settings.catalog_boards)}


@router.get("/subjects/{board}/{class_name}")
async def class_subjects(board: str, class_name: str, catalog: CatalogStore = Depends(get_catalog)):
    return subjects_for_class(catalog, board, class_name)


@router.get("/subjects/{board}/{class_name}/{group}")
async def group_subjects(board: str, class_name: str, group: str, catalog: CatalogStore = Depends(get_catalog)):
    return subjects_for_group(catalog, board, class_name, group)


@router.get("/chapters/{board}/{class_name}/{subject}")
async def subject_chapters(board: str, class_name: str, subject: str, catalog: CatalogStore = Depends(get_catalog)):
    return chapters_for_subject(catalog, board, class_name, subject)


@router.get("/topics/{board}/{class_name}/{subject}/{chapter}")
async def chapter_topics(
    board: str,
    class_name: str,
    subject: str,
    chapter: str,
    catalog: CatalogStore = Depends(get_catalog),
):
    return topics_for_chapter(catalog, board, class_name, subject, chapter)
