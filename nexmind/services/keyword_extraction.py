"""
Keyword heuristics used when no LLM is available.

German-first (with English equivalents where the app's users mix both):
category classification by keyword hits, input splitting, and simple
priority, person and project extraction.
"""

import re

from nexmind.models.note import NoteCategory, TaskPriority

TASK_KEYWORDS = (
    "todo", "erledigen", "aufgabe", "machen", "fertig", "deadline",
    "abgeben", "task", "checklist", "must", "sollte", "muss",
)
EVENT_KEYWORDS = (
    "termin", "meeting", "treffen", "datum", "uhr", "uhrzeit",
    "morgen", "heute", "montag", "dienstag", "mittwoch", "donnerstag",
    "freitag", "samstag", "sonntag", "event", "veranstaltung", "kalendar",
)
IDEA_KEYWORDS = (
    "idee", "vielleicht", "könnte", "wäre", "eventuell", "möglicherweise",
    "brainstorm", "konzept", "vision", "innovation", "kreativ",
)
PERSON_KEYWORDS = (
    "person", "kontakt", "telefon", "email", "anrufen", "sprechen mit",
    "nachricht an", "@", "herr", "frau", "kollege", "kollegin", "chef",
)

# Tie-break order: first listed wins
CATEGORY_KEYWORDS: tuple[tuple[NoteCategory, tuple[str, ...]], ...] = (
    (NoteCategory.TASK, TASK_KEYWORDS),
    (NoteCategory.EVENT, EVENT_KEYWORDS),
    (NoteCategory.IDEA, IDEA_KEYWORDS),
    (NoteCategory.PERSON, PERSON_KEYWORDS),
)

HIGH_PRIORITY_WORDS = ("muss", "dringend", "urgent", "wichtig")
MEDIUM_PRIORITY_WORDS = ("sollte", "bald")
LOW_PRIORITY_WORDS = ("könnte", "irgendwann", "später")

PROJECT_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Finanzen", ("miete", "konto", "überweis")),
    ("Jobsuche", ("bewerbung", "job", "stelle")),
    ("Soziales", ("geburtstag", "treffen", "freund")),
    ("Draftnex", ("draftnex", "nexmind")),
    ("Selbstständigkeit", ("selbstständig", "gründ")),
)

PERSON_STOPWORDS = frozenset({"Ich", "Du", "Er", "Sie", "Das", "Der", "Die", "Ein", "Eine"})

_SPLIT_PATTERN = re.compile(r",|\s(?:und|and|außerdem|also)\s")
_NAME_PATTERN = re.compile(r"^[A-ZÄÖÜ][a-zäöüß]+$")
MIN_PART_LENGTH = 4


def classify_note(text: str) -> NoteCategory:
    """
    Keyword classifier.

    Counts keyword hits per category; the category with most hits wins,
    ties go task > event > idea > person, and no hits means info.
    """
    lower = text.lower()
    best_category = NoteCategory.INFO
    best_hits = 0

    for category, keywords in CATEGORY_KEYWORDS:
        hits = sum(1 for keyword in keywords if keyword in lower)
        if hits > best_hits:
            best_category, best_hits = category, hits

    return best_category


def category_confidences(chosen: NoteCategory, chosen_score: float, other_score: float) -> dict[NoteCategory, float]:
    """Confidence map giving ``chosen_score`` to one category and ``other_score`` to the rest."""
    return {category: chosen_score if category == chosen else other_score for category in NoteCategory}


def split_input(text: str) -> list[str]:
    """
    Split free text into candidate items at commas and joining words.

    Parts of three characters or fewer are dropped.
    """
    parts = (part.strip() for part in _SPLIT_PATTERN.split(text))
    return [part for part in parts if len(part) >= MIN_PART_LENGTH]


def extract_priority(text: str) -> TaskPriority:
    lower = text.lower()
    if any(word in lower for word in HIGH_PRIORITY_WORDS):
        return TaskPriority.HIGH
    if any(word in lower for word in MEDIUM_PRIORITY_WORDS):
        return TaskPriority.MEDIUM
    if any(word in lower for word in LOW_PRIORITY_WORDS):
        return TaskPriority.LOW
    return TaskPriority.MEDIUM


def extract_persons(text: str) -> list[str]:
    """Capitalized words that look like first names, without repeats."""
    persons: list[str] = []
    for word in text.split():
        if len(word) > 2 and _NAME_PATTERN.match(word) and word not in PERSON_STOPWORDS:
            if word not in persons:
                persons.append(word)
    return persons


def extract_projects(text: str) -> list[str]:
    lower = text.lower()
    return [project for project, stems in PROJECT_RULES if any(stem in lower for stem in stems)]
