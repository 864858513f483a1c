"""
Pydantic request models for the API.

Every model accepts both snake_case and camelCase field names because the
admin dashboard and the public site send either form.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_columns(self) -> dict[str, Any]:
        """Field values keyed by their snake_case column names."""
        return self.model_dump(by_alias=False)


class PublishFlags(ApiModel):
    is_featured: bool = False
    is_published: bool = True
    status: str = "published"


# =============================================================================
# Auth
# =============================================================================


class LoginRequest(ApiModel):
    username: str = ""
    password: str = ""


class VerifyRequest(ApiModel):
    token: str = ""


class ChangePasswordRequest(ApiModel):
    current_password: str = ""
    new_password: str = ""
    token: str = ""


# =============================================================================
# Media
# =============================================================================


class PhotoCreate(PublishFlags):
    title: str
    description: str = ""
    image_url: str = Field(validation_alias=AliasChoices("image_url", "imageUrl", "image"))
    category: str = "Architecture"
    album_name: str | None = Field(
        default=None, validation_alias=AliasChoices("album_name", "albumName", "album")
    )
    tags: list[str] = Field(default_factory=list)
    display_order: int = 0


class VideoCreate(PublishFlags):
    title: str
    description: str = ""
    video_url: str | None = Field(
        default=None, validation_alias=AliasChoices("video_url", "videoUrl", "videoSrc", "url")
    )
    thumbnail_url: str = Field(
        validation_alias=AliasChoices("thumbnail_url", "thumbnailUrl", "thumbnail")
    )
    duration: str | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list)


class DesignCreate(PublishFlags):
    title: str
    description: str = ""
    image_url: str = Field(validation_alias=AliasChoices("image_url", "imageUrl", "image"))
    design_type: str = Field(validation_alias=AliasChoices("design_type", "designType", "type"))
    category: str | None = None
    project_name: str | None = Field(
        default=None, validation_alias=AliasChoices("project_name", "projectName", "project")
    )
    tags: list[str] = Field(default_factory=list)
    display_order: int = 0


class MediaTestimonialCreate(PublishFlags):
    name: str
    role: str
    quote: str
    organization: str | None = None
    project_name: str | None = None
    image_url: str | None = Field(
        default=None, validation_alias=AliasChoices("image_url", "imageUrl", "image")
    )
    rating: int | None = Field(default=None, ge=1, le=5)


class FeatureToggle(ApiModel):
    featured: bool | None = None
    is_featured: bool | None = None

    def value(self) -> bool | None:
        return self.is_featured if self.is_featured is not None else self.featured


class PublishToggle(ApiModel):
    is_published: bool | None = None


# =============================================================================
# News & events
# =============================================================================


class NewsCreate(PublishFlags):
    title: str
    excerpt: str = ""
    content: str = ""
    image_url: str | None = Field(
        default=None, validation_alias=AliasChoices("image_url", "imageUrl", "image")
    )
    category: str = "Architecture"
    author: str = "ASPIRE Team"
    date: str | None = None
    read_time: str = "5 min"


class EventCreate(PublishFlags):
    title: str
    description: str = ""
    excerpt: str = ""
    image_url: str | None = Field(
        default=None, validation_alias=AliasChoices("image_url", "imageUrl", "image")
    )
    event_date: str | None = None
    event_time: str | None = None
    location: str | None = None
    category: str = "Event"
    author: str = "ASPIRE Team"
    read_time: str | None = None


# =============================================================================
# Get involved
# =============================================================================


class MembershipCreate(ApiModel):
    full_name: str
    email: str
    membership_type: str
    phone: str | None = None
    organization: str | None = None
    position: str | None = None
    experience_years: int | None = None
    interests: list[str] | None = None
    message: str | None = None


class DonationCreate(ApiModel):
    full_name: str
    email: str
    amount: float = Field(gt=0)
    payment_method: str
    currency: str = "USD"
    transaction_id: str | None = None
    bank_name: str | None = None
    account_number: str | None = None
    mtn_mobile_number: str | None = None
    payment_proof: str | None = None


class FeedbackCreate(ApiModel):
    full_name: str
    email: str
    category: str
    message: str
    subject: str | None = None
    rating: int | None = Field(default=None, ge=1, le=5)


class IdeaCreate(ApiModel):
    full_name: str
    email: str
    idea_title: str
    category: str
    description: str
    expected_outcomes: str | None = None
    target_audience: str | None = None


class PartnershipCreate(ApiModel):
    full_name: str
    email: str
    organization: str
    partnership_type: str
    position: str | None = None
    proposal: str | None = None
    budget_range: str | None = None
    timeline: str | None = None


class StoryCreate(PublishFlags):
    author_name: str
    story_title: str
    story_content: str
    author_title: str | None = None
    author_organization: str | None = None
    category: str | None = None
    featured_image: str | None = None


class StatusUpdate(ApiModel):
    status: str
    notes: str | None = None


# =============================================================================
# Contact & newsletter
# =============================================================================


class ContactSubmission(ApiModel):
    name: str = ""
    email: str = ""
    message: str = ""


class ContactInfoCreate(ApiModel):
    type: str
    title: str
    value: str
    description: str | None = None
    display_order: int = 0
    is_active: bool = True


class EmailSettingsUpdate(ApiModel):
    recipient_email: str | None = None
    subject_template: str | None = None
    enabled: bool | None = None


class NewsletterSubscription(ApiModel):
    email: str = ""


# =============================================================================
# Colleague uni
# =============================================================================


class TeamMemberCreate(ApiModel):
    name: str = ""
    role: str = ""
    bio: str = ""
    image_url: str | None = Field(
        default=None, validation_alias=AliasChoices("image_url", "imageUrl", "image")
    )
    display_order: int = 0
    is_active: bool = True


class ActiveToggle(ApiModel):
    is_active: bool | None = None


class InitiativeCreate(ApiModel):
    title: str = ""
    description: str = ""
    status: str = "planned"
    target_date: str | None = None
    is_active: bool = True


class ColleagueContact(ApiModel):
    name: str = ""
    email: str = ""
    subject: str = ""
    message: str = ""


# =============================================================================
# Cache administration
# =============================================================================


class InvalidateRequest(ApiModel):
    pattern: str
