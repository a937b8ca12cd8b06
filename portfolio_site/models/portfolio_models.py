"""Pydantic models for portfolio content."""

from typing import List, Optional
from pydantic import BaseModel, Field


class Contact(BaseModel):
    """Contact links model."""

    email: str
    linkedin: str
    github: str


class PersonalInfo(BaseModel):
    """Personal information model."""

    name: str
    title: str
    bio: str
    location: Optional[str] = None
    resume_url: Optional[str] = Field(None, alias="resumeUrl")
    contact: Contact

    class Config:
        populate_by_name = True


class ProjectLinks(BaseModel):
    """Project links model."""

    demo: Optional[str] = None
    github: Optional[str] = None


class Project(BaseModel):
    """Project model."""

    id: str
    title: str
    description: str
    long_description: Optional[str] = Field(None, alias="longDescription")
    technologies: List[str] = []
    image: Optional[str] = None
    links: ProjectLinks = ProjectLinks()
    tags: List[str] = []
    featured: bool = False

    class Config:
        populate_by_name = True


class Experience(BaseModel):
    """Experience entry model."""

    id: str
    company: str
    role: str
    period: str
    description: str = ""
    highlights: Optional[List[str]] = None


class Education(BaseModel):
    """Education entry model."""

    id: str
    institution: str
    degree: str
    period: str
    highlights: Optional[List[str]] = None


class Photo(BaseModel):
    """Gallery photo model."""

    path: str
    caption: Optional[str] = None


class PortfolioContent(BaseModel):
    """Complete portfolio content model."""

    personal: PersonalInfo
    projects: List[Project]
    experience: List[Experience]
    skills: List[str]
    education: List[Education] = []
    hobbies: Optional[List[str]] = None
    photos: Optional[List[Photo]] = None

    def find_project(self, project_id: str) -> Optional[Project]:
        """Return the project with the given id, if any."""
        return next((p for p in self.projects if p.id == project_id), None)

    def find_experience(self, experience_id: str) -> Optional[Experience]:
        """Return the experience entry with the given id, if any."""
        return next((e for e in self.experience if e.id == experience_id), None)
