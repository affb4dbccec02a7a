from pydantic import BaseModel
from typing import Literal, Optional

Category = Literal["farmer", "livestock", "vet", "general"]

# (code, native name)
LANGUAGES = [
    ("ur", "اردو"),
    ("pa", "پنجابی"),
    ("ps", "پشتو"),
    ("sd", "سندھی"),
    ("bal", "بلوچی"),
    ("en", "English"),
]
LANGUAGE_CODES = frozenset(code for code, _ in LANGUAGES)

CATEGORY_LABELS = {
    "farmer": "کسان",
    "livestock": "مویشی پال",
    "vet": "ویٹرنری ڈاکٹر",
    "general": "عام صارف",
}


class UserProfile(BaseModel):
    id: str
    name: str
    phone: str
    category: Category = "general"
    language: str = "ur"
    location: str = "Pakistan"


class ProfileIn(BaseModel):
    session_id: str
    profile: UserProfile


class LanguageView(BaseModel):
    code: str
    name: str


class CategoryView(BaseModel):
    id: str
    name: str


class OutcomeIn(BaseModel):
    user_id: str
    treatment: str
    outcome: str
    duration: int


class Advisory(BaseModel):
    id: str
    title: str
    content: str
    category: str
    priority: Optional[str] = None
