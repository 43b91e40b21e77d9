# crud.py
from typing import Optional

from sqlalchemy import case, select, update
from sqlalchemy.orm import Session

import models
from db import ConflictError
from utils import ContentKind, to_text

CONTENT_MODELS = {
    ContentKind.CROSSWORD: models.Crossword,
    ContentKind.MCQ: models.MCQ,
}

ENTRY_MODELS = {
    ContentKind.CROSSWORD: models.CrosswordEntry,
    ContentKind.MCQ: models.MCQEntry,
}


# ---- content --------------------------------------------------------------

def store_crossword(db: Session, crosswordData, questions, answers, passage, generatedKey) -> int:
    row = models.Crossword(
        crosswordData=to_text(crosswordData),
        questions=to_text(questions),
        answers=to_text(answers),
        passage=passage,
        generatedKey=generatedKey,
    )
    db.add(row)
    db.flush()
    return row.id


def store_mcq(db: Session, questions, options, correct_answers, passage, generatedKey) -> int:
    row = models.MCQ(
        questions=to_text(questions),
        options=to_text(options),
        correct_answers=to_text(correct_answers),
        passage=passage,
        generatedKey=generatedKey,
    )
    db.add(row)
    db.flush()
    return row.id


def get_crossword(db: Session, key: str) -> Optional[dict]:
    r = db.execute(
        select(models.Crossword).where(models.Crossword.generatedKey == key)
    ).scalars().first()
    if r is None:
        return None
    return {
        "crosswordData": r.crosswordData,
        "questions": r.questions,
        "answers": r.answers,
        "passage": r.passage,
    }


def get_mcq(db: Session, key: str) -> Optional[dict]:
    r = db.execute(
        select(models.MCQ).where(models.MCQ.generatedKey == key)
    ).scalars().first()
    if r is None:
        return None
    return {
        "questions": r.questions,
        "options": r.options,
        "correct_answers": r.correct_answers,
        "passage": r.passage,
    }


def key_exists(db: Session, kind: ContentKind, key: str) -> bool:
    model = CONTENT_MODELS[kind]
    hit = db.execute(
        select(model.id).where(model.generatedKey == key).limit(1)
    ).first()
    return hit is not None


# ---- leaderboard entries --------------------------------------------------

def register_name(db: Session, kind: ContentKind, name: str, key: str, allow_duplicate: bool) -> int:
    """
    Insert a fresh (not done, zero time) entry for name under key.

    With allow_duplicate=False an existing (name, key) entry raises
    ConflictError; a unique violation on the insert surfaces the same way
    from Store.call.
    """
    model = ENTRY_MODELS[kind]
    if not allow_duplicate and find_entry(db, kind, name, key) is not None:
        raise ConflictError(f"{name!r} already registered for {key!r}")

    row = model(name=name, generatedKey=key)
    db.add(row)
    db.flush()
    return row.id


def find_entry(db: Session, kind: ContentKind, name: str, key: Optional[str] = None) -> Optional[dict]:
    """First entry for name; scoped to one activity only when key is given."""
    model = ENTRY_MODELS[kind]
    stmt = select(model).where(model.name == name)
    if key is not None:
        stmt = stmt.where(model.generatedKey == key)
    r = db.execute(stmt.order_by(model.id).limit(1)).scalars().first()
    if r is None:
        return None
    return {"name": r.name, "key": r.generatedKey, "is_done": bool(r.is_done)}


def mark_crossword_done(db: Session, key, name, time) -> int:
    """Returns the number of rows touched; 0 when the student never registered."""
    result = db.execute(
        update(models.CrosswordEntry)
        .where(models.CrosswordEntry.generatedKey == key, models.CrosswordEntry.name == name)
        .values(is_done=True, time_taken=time)
    )
    return result.rowcount


def record_mcq_result(db: Session, name: str, key: str, score: int, time: float) -> int:
    result = db.execute(
        update(models.MCQEntry)
        .where(models.MCQEntry.name == name, models.MCQEntry.generatedKey == key)
        .values(score=score, time_taken=time, is_done=True)
    )
    return result.rowcount


def crossword_leaderboard(db: Session, key: str) -> list[dict]:
    # zero time means not finished yet: those go last, the rest fastest first
    E = models.CrosswordEntry
    rows = db.execute(
        select(E)
        .where(E.generatedKey == key)
        .order_by(case((E.time_taken == 0, 1), else_=0), E.time_taken)
    ).scalars().all()
    return [
        {"name": r.name, "is_done": bool(r.is_done), "time_taken": r.time_taken}
        for r in rows
    ]


def mcq_leaderboard(db: Session, key: str) -> list[dict]:
    E = models.MCQEntry
    rows = db.execute(
        select(E).where(E.generatedKey == key).order_by(E.score.desc())
    ).scalars().all()
    return [
        {"name": r.name, "score": r.score, "is_done": bool(r.is_done), "time_taken": r.time_taken}
        for r in rows
    ]
