"""Request models for API endpoints."""

from typing import Optional
from pydantic import BaseModel, Field
from portfolio_site.models.portfolio_models import PortfolioContent


class GenerateRequest(BaseModel):
    """Request model for layout generation.

    Fields are optional at the schema level so that missing values produce the
    endpoint's own 400 response instead of a validation error.
    """

    visitor_tag: Optional[str] = Field(
        None,
        alias="visitorTag",
        description="Visitor category (recruiter, developer, collaborator, friend)",
        examples=["recruiter"],
    )
    custom_intent: Optional[str] = Field(
        None,
        alias="customIntent",
        description="Free-text description of what the visitor is looking for",
        examples=["I'm an investor looking at AI startups"],
    )
    portfolio_content: Optional[PortfolioContent] = Field(
        None,
        alias="portfolioContent",
        description="Portfolio content the layout may reference",
    )

    class Config:
        populate_by_name = True


class FeedbackRequest(BaseModel):
    """Request model for like/dislike feedback."""

    feedback_type: Optional[str] = Field(
        None,
        alias="feedbackType",
        description="Either 'like' or 'dislike'",
        examples=["dislike"],
    )
    audience_type: Optional[str] = Field(
        None,
        alias="audienceType",
        description="Visitor tag the layout was generated for",
        examples=["developer"],
    )
    cache_key: Optional[str] = Field(
        None,
        alias="cacheKey",
        description="Cache key of the layout being rated",
    )
    session_id: Optional[str] = Field(
        None,
        alias="sessionId",
        description="Visitor session identifier",
    )

    class Config:
        populate_by_name = True
