"""
paperify/features/catalog/service.py

Read-only curriculum catalog.

One JSON document per board (`<board>_board_syllabus.json`) holding
`[{class, subjects: [{name, chapters: [{chapter, topics: [{topic, status}]}]}]}]`.
A missing or unreadable document is an empty catalog, never an error, so
browsing keeps working when a data file is absent.
"""

import json
import logging
import os
from typing import Any, Dict, Iterable, List, Optional

from paperify.models.catalog import localized_text, normalize_name, parse_localized

logger = logging.getLogger(__name__)

SCIENCE_SUBJECTS = frozenset({
    "biology", "chemistry", "physics", "mathematics", "computer science", "english", "urdu",
})
ARTS_SUBJECTS = frozenset({
    "civics", "food and nutrition", "general mathematics", "general science", "home economics",
    "pakistan studies", "physical education", "poultry farming", "english", "urdu",
    "islamic studies", "history", "geography", "economics", "political science", "sociology",
    "psychology",
})
SUBJECT_GROUPS = {"science": SCIENCE_SUBJECTS, "arts": ARTS_SUBJECTS}

TOPIC_CLASSES = frozenset({"11", "12"})


class CatalogStore:
    """Loads board documents from `directory` on every call."""

    def __init__(self, directory: str):
        self.directory = directory

    def path_for(self, board: str) -> str:
        safe_board = os.path.basename((board or "").strip().lower())
        return os.path.join(self.directory, f"{safe_board}_board_syllabus.json")

    def load_board(self, board: str) -> List[Dict[str, Any]]:
        path = self.path_for(board)
        if not os.path.exists(path):
            logger.warning("catalog.board_missing", extra={"path": path})
            return []
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError):
            logger.error("catalog.board_unreadable", exc_info=True, extra={"path": path})
            return []
        if not isinstance(data, list):
            logger.warning("catalog.board_malformed", extra={"path": path})
            return []
        return data


def find_class(data: Iterable[Dict[str, Any]], class_name: str) -> Optional[Dict[str, Any]]:
    wanted = str(class_name).strip()
    for entry in data:
        if isinstance(entry, dict) and str(entry.get("class", "")).strip() == wanted:
            return entry
    return None


def _subjects(class_entry: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    if not class_entry:
        return []
    subjects = class_entry.get("subjects")
    return [s for s in subjects if isinstance(s, dict)] if isinstance(subjects, list) else []


def _find_subject(class_entry: Optional[Dict[str, Any]], subject: str) -> Optional[Dict[str, Any]]:
    wanted = normalize_name(subject)
    for entry in _subjects(class_entry):
        name = localized_text(entry.get("name"))
        if name and normalize_name(name) == wanted:
            return entry
    return None


def all_subjects(store: CatalogStore, boards: Iterable[str]) -> List[str]:
    """Sorted distinct subject names across every board."""
    names = set()
    for board in boards:
        for class_entry in store.load_board(board):
            if not isinstance(class_entry, dict):
                continue
            for subject in _subjects(class_entry):
                name = localized_text(subject.get("name"))
                if name and name.strip():
                    names.add(name.strip())
    return sorted(names)


def subjects_for_class(store: CatalogStore, board: str, class_name: str) -> List[Dict[str, Any]]:
    """Every subject of a class with a resolved `display_name`."""
    class_entry = find_class(store.load_board(board), class_name)
    return [
        {**subject, "display_name": localized_text(subject.get("name")) or "Unknown Subject"}
        for subject in _subjects(class_entry)
    ]


def subjects_for_group(store: CatalogStore, board: str, class_name: str, group: str) -> List[Dict[str, Any]]:
    """Subjects of a class filtered by group; `all` keeps everything, unknown groups yield []."""
    class_entry = find_class(store.load_board(board), class_name)
    subjects = _subjects(class_entry)
    group_key = normalize_name(group)
    if group_key == "all":
        return subjects
    allowed = SUBJECT_GROUPS.get(group_key)
    if allowed is None:
        return []
    return [
        s for s in subjects
        if normalize_name(localized_text(s.get("name"))) in allowed
    ]


def chapters_for_subject(store: CatalogStore, board: str, class_name: str, subject: str) -> List[Dict[str, str]]:
    subject_entry = _find_subject(find_class(store.load_board(board), class_name), subject)
    if subject_entry is None:
        return []
    chapters = subject_entry.get("chapters") or []
    result = []
    for chapter in chapters:
        if not isinstance(chapter, dict):
            continue
        title = parse_localized(chapter.get("chapter"))
        result.append({
            "title": (title.text if title else None) or chapter.get("title") or "",
            "title_ur": (title.ur if title else "") or "",
        })
    return result


def topics_for_chapter(
    store: CatalogStore, board: str, class_name: str, subject: str, chapter: str
) -> List[Dict[str, str]]:
    """Topics of one chapter; only classes 11 and 12 carry topics."""
    if str(class_name).strip() not in TOPIC_CLASSES:
        return []
    subject_entry = _find_subject(find_class(store.load_board(board), class_name), subject)
    if subject_entry is None:
        return []
    wanted = normalize_name(chapter)
    for entry in subject_entry.get("chapters") or []:
        if not isinstance(entry, dict):
            continue
        if normalize_name(localized_text(entry.get("chapter"))) != wanted:
            continue
        topics = entry.get("topics")
        if not isinstance(topics, list):
            return []
        return [
            {"topic": t.get("topic"), "status": t.get("status") or "active"}
            for t in topics
            if isinstance(t, dict)
        ]
    return []
