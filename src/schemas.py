"""
Site Content API - Pydantic models

``ContentForm`` is the boundary model for a submission: every field is
optional with a defined default.  ``ContentSnapshot`` and its record models
describe the persisted document and enforce the field length limits.

All models use camelCase aliases on the wire (``heroSlides``,
``palpitesTitle`` …) and snake_case attributes in Python.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.config import (
    MAX_FEATURE_DESCRIPTION_LENGTH,
    MAX_SLIDE_DESCRIPTION_LENGTH,
    MAX_TITLE_LENGTH,
)

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Submission input
# ---------------------------------------------------------------------------
class ContentForm(BaseModel):
    """Parsed submission fields, before positional pairing."""

    model_config = _CAMEL

    palpites_title: str = ""
    resultados_title: str = ""
    whatsapp_number: str = ""
    youtube_link: str = ""

    slide_titles: List[str] = Field(default_factory=list)
    slide_descriptions: List[str] = Field(default_factory=list)
    palpites_dias: List[str] = Field(default_factory=list)
    palpites_numeros: List[Any] = Field(default_factory=list)
    resultados_datas: List[str] = Field(default_factory=list)
    resultados_numeros: List[Any] = Field(default_factory=list)
    resultados_animais: List[str] = Field(default_factory=list)
    resultados_premiacoes: List[str] = Field(default_factory=list)
    feature_titles: List[str] = Field(default_factory=list)
    feature_descriptions: List[str] = Field(default_factory=list)

    @field_validator(
        "palpites_title",
        "resultados_title",
        "whatsapp_number",
        "youtube_link",
        mode="before",
    )
    @classmethod
    def _scalar_to_str(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator(
        "slide_titles",
        "slide_descriptions",
        "palpites_dias",
        "resultados_datas",
        "resultados_animais",
        "resultados_premiacoes",
        "feature_titles",
        "feature_descriptions",
        mode="before",
    )
    @classmethod
    def _text_list(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            value = [value]
        return ["" if item is None else str(item) for item in value]

    @field_validator("palpites_numeros", "resultados_numeros", mode="before")
    @classmethod
    def _numeros_list(cls, value: Any) -> List[Any]:
        # A lone JSON string is one entry, not a list of characters.
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return list(value)
        # Any other scalar is one (unparsable) entry; coerce_numeros empties it.
        return [value]

    @classmethod
    def list_field_aliases(cls) -> List[str]:
        """Wire names of the repeated (array) fields."""
        return [
            field.alias or name
            for name, field in cls.model_fields.items()
            if field.annotation is not str
        ]

    @classmethod
    def scalar_field_aliases(cls) -> List[str]:
        """Wire names of the single-valued text fields."""
        return [
            field.alias or name
            for name, field in cls.model_fields.items()
            if field.annotation is str
        ]


# ---------------------------------------------------------------------------
# Persisted document
# ---------------------------------------------------------------------------
class HeroSlide(BaseModel):
    model_config = _CAMEL

    image: str = ""
    title: str = Field("", max_length=MAX_TITLE_LENGTH)
    description: str = Field("", max_length=MAX_SLIDE_DESCRIPTION_LENGTH)


class Palpite(BaseModel):
    model_config = _CAMEL

    dia: str = ""
    numeros: List[str] = Field(default_factory=list)


class Resultado(BaseModel):
    model_config = _CAMEL

    data: str = ""
    numeros: List[str] = Field(default_factory=list)
    animal: str = ""
    premiacao: str = ""


class Feature(BaseModel):
    model_config = _CAMEL

    title: str = Field("", max_length=MAX_TITLE_LENGTH)
    description: str = Field("", max_length=MAX_FEATURE_DESCRIPTION_LENGTH)


class ContentSnapshot(BaseModel):
    """One full replacement of the site content."""

    model_config = _CAMEL

    hero_slides: List[HeroSlide] = Field(default_factory=list)
    palpites_title: str = Field("", max_length=MAX_TITLE_LENGTH)
    palpites: List[Palpite] = Field(default_factory=list)
    resultados_title: str = Field("", max_length=MAX_TITLE_LENGTH)
    resultados: List[Resultado] = Field(default_factory=list)
    whatsapp_number: str = ""
    youtube_link: str = ""
    features: List[Feature] = Field(default_factory=list)

    def to_document(self) -> Dict[str, Any]:
        """Serialize with wire (camelCase) keys for storage."""
        return self.model_dump(by_alias=True)
