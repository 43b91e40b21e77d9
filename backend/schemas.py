# schemas.py
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, Field

NonEmpty = Annotated[str, Field(min_length=1)]


# ---- request bodies -------------------------------------------------------

class CrosswordIn(BaseModel):
    crosswordData: Any = None
    questions: Any = None
    answers: Any = None
    passage: Any = None
    generatedKey: Any = None


class MCQIn(BaseModel):
    questions: Any = None
    options: Any = None
    correct_answers: Any = None
    passage: Any = None
    generatedKey: Any = None


class NameIn(BaseModel):
    name: NonEmpty
    key: NonEmpty


class CrosswordDoneIn(BaseModel):
    key: Any = None
    name: Any = None
    time: Any = None


class MCQResultIn(BaseModel):
    name: NonEmpty
    key: NonEmpty
    score: int
    time: float


# ---- responses ------------------------------------------------------------

class Message(BaseModel):
    message: str


class Success(BaseModel):
    success: bool = True


class CrosswordOut(BaseModel):
    found: bool
    crosswordData: Optional[str] = None
    questions: Optional[str] = None
    answers: Optional[str] = None
    passage: Optional[str] = None


class MCQOut(BaseModel):
    found: bool
    questions: Optional[str] = None
    options: Optional[str] = None
    correct_answers: Optional[str] = None
    passage: Optional[str] = None


class EntryOut(BaseModel):
    found: bool
    name: Optional[str] = None
    key: Optional[str] = None
    is_done: Optional[bool] = None


class CrosswordRank(BaseModel):
    name: str
    is_done: bool
    time_taken: Optional[float] = None


class MCQRank(BaseModel):
    name: str
    score: Optional[int] = None
    is_done: bool
    time_taken: Optional[float] = None


class CrosswordBoardOut(BaseModel):
    found: bool
    leaderboard: Optional[List[CrosswordRank]] = None


class MCQBoardOut(BaseModel):
    found: bool
    leaderboard: Optional[List[MCQRank]] = None


class Availability(BaseModel):
    available: bool
