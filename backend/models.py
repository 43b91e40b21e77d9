# models.py
from sqlalchemy import (
    Boolean,
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
)

from db import Base


class Crossword(Base):
    __tablename__ = "imported_crosswords"

    id = Column(Integer, primary_key=True, autoincrement=True)
    crosswordData = Column(Text)     # JSON text of the grid
    questions = Column(Text)         # JSON text: ["clue", ...]
    answers = Column(Text)           # JSON text: ["word", ...]
    passage = Column(Text)
    generatedKey = Column(String(255), unique=True)


class CrosswordEntry(Base):
    __tablename__ = "crossword_leaderboard"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    is_done = Column(Boolean, nullable=False, default=False, server_default=false())
    time_taken = Column(Float, default=0.0, server_default="0")
    generatedKey = Column(
        String(255),
        ForeignKey("imported_crosswords.generatedKey", name="FK_generatedKey"),
    )


class MCQ(Base):
    __tablename__ = "imported_mcqs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    questions = Column(Text)         # JSON text: ["question", ...]
    options = Column(Text)           # JSON text: [["a", "b", "c", "d"], ...]
    correct_answers = Column(Text)   # JSON text: ["a", ...]
    passage = Column(Text)
    generatedKey = Column(String(255), unique=True)


class MCQEntry(Base):
    __tablename__ = "mcq_leaderboard"
    __table_args__ = (UniqueConstraint("name", "generatedKey", name="UQ_mcq_name_key"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    score = Column(Integer, default=0, server_default="0")
    is_done = Column(Boolean, nullable=False, default=False, server_default=false())
    time_taken = Column(Float, default=0.0, server_default="0")
    generatedKey = Column(
        String(255),
        ForeignKey("imported_mcqs.generatedKey", name="FK_mcqKey"),
    )
