"""
Pydantic models for the Family Tree layout service.
"""
from datetime import date
from enum import Enum
from typing import Optional, List, Tuple
import uuid

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def generate_id() -> str:
    """Generate a unique ID."""
    return str(uuid.uuid4())


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class RelationshipCategory(str, Enum):
    COUPLE = "couple"
    PARENT_CHILD = "parent_child"


class CoupleStatus(str, Enum):
    MARRIED = "married"
    CIVIL = "civil"
    DATING = "dating"
    DIVORCED = "divorced"
    WIDOWED = "widowed"
    OTHER = "other"


class ChildRelation(str, Enum):
    BIOLOGICAL = "biological"
    ADOPTED = "adopted"
    FOSTER = "foster"
    GUARDIANSHIP = "guardianship"
    STEPCHILD = "stepchild"


class Person(CamelModel):
    """Model representing a person in the family tree."""
    id: str = Field(default_factory=generate_id)
    first_name: str = ""
    last_name: Optional[str] = None
    middle_name: Optional[str] = None
    maiden_name: Optional[str] = None
    gender: Gender = Gender.MALE
    birth_year: Optional[int] = None
    birth_date: Optional[date] = None
    birth_date_known: bool = False  # full date known, not just the year
    is_alive: bool = True
    death_year: Optional[int] = None
    death_date: Optional[date] = None
    death_date_known: bool = False
    note: Optional[str] = None

    @property
    def known_birth_year(self) -> Optional[int]:
        if self.birth_year is not None:
            return self.birth_year
        if self.birth_date is not None:
            return self.birth_date.year
        return None

    @property
    def birth_precision(self) -> str:
        """One of "unknown", "year" or "date"."""
        if self.birth_date is not None and self.birth_date_known:
            return "date"
        if self.known_birth_year is not None:
            return "year"
        return "unknown"

    @property
    def known_death_year(self) -> Optional[int]:
        if self.death_year is not None:
            return self.death_year
        if self.death_date is not None:
            return self.death_date.year
        return None

    @property
    def display_name(self) -> str:
        parts = [self.first_name, self.last_name]
        name = " ".join(p for p in parts if p)
        return name or self.id


class Relationship(CamelModel):
    """
    Model representing a relationship between two persons.

    For parent_child relationships person1 is the parent and person2 the child.
    """
    id: str = Field(default_factory=generate_id)
    category: RelationshipCategory
    person1_id: str
    person2_id: str
    couple_status: Optional[CoupleStatus] = None
    child_relation: Optional[ChildRelation] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    note: Optional[str] = None

    @property
    def is_divorced(self) -> bool:
        return self.couple_status == CoupleStatus.DIVORCED


class FamilyTree(CamelModel):
    """Model representing the entire family tree."""
    name: str = "Family tree"
    owner_person_id: Optional[str] = None
    persons: List[Person] = Field(default_factory=list)
    relationships: List[Relationship] = Field(default_factory=list)


class Generation(CamelModel):
    """Persons sharing a generation offset relative to the tree owner."""
    number: int
    offset: int
    label: str
    person_ids: List[str] = Field(default_factory=list)


class LayoutOptions(CamelModel):
    """Model for layout configuration. All distances are grid units."""
    root_person_id: Optional[str] = None
    node_span: float = Field(2.0, gt=0)
    gap: float = Field(0.5, ge=0)
    row_height: float = Field(3.0, gt=0)
    center: float = 100.0
    margin: float = 1.0
    canvas_padding: float = Field(2.0, ge=0)
    connector_overlap: float = Field(0.05, ge=0)
    collision_passes: int = Field(20, ge=1)

    @property
    def slot(self) -> float:
        return self.node_span + self.gap


class Canvas(CamelModel):
    width: float = 0.0
    height: float = 0.0


class RelativeRef(CamelModel):
    id: str
    type: str


class LayoutNode(CamelModel):
    """A placed person."""
    id: str
    left: float
    top: float
    gender: Gender
    parents: List[RelativeRef] = Field(default_factory=list)
    children: List[RelativeRef] = Field(default_factory=list)
    siblings: List[RelativeRef] = Field(default_factory=list)
    spouses: List[RelativeRef] = Field(default_factory=list)
    has_sub_tree: bool = False


class CouplePair(CamelModel):
    person1_id: str
    person2_id: str
    divorced: bool = False


class GenerationRow(CamelModel):
    top: float
    offset: int
    label: str


Connector = Tuple[float, float, float, float]


class LayoutResult(CamelModel):
    """Output of the layout engine, in grid units."""
    root_person_id: Optional[str] = None
    canvas: Canvas = Field(default_factory=Canvas)
    nodes: List[LayoutNode] = Field(default_factory=list)
    connectors: List[Connector] = Field(default_factory=list)
    dashed: List[int] = Field(default_factory=list)  # indices into connectors
    couples: List[CouplePair] = Field(default_factory=list)
    rows: List[GenerationRow] = Field(default_factory=list)


class ExportOptions(CamelModel):
    """Model for export configuration."""
    format: str = "png"  # png, jpg, pdf
    width: int = 1920
    height: int = 1080
    quality: int = 90  # For JPG
    page_size: str = "A4"  # For PDF: A4, Letter, Legal, A3
    orientation: str = "landscape"  # portrait, landscape
    unit_size: float = Field(40.0, gt=0)  # pixels per grid unit before fitting
