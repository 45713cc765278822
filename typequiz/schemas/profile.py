"""Profile Pydantic schemas for API request/response models."""

from pydantic import BaseModel, ConfigDict, Field, computed_field

from typequiz.schemas.typology import TypologyResult
from typequiz.services.phone import canonicalize, format_phone_display


class Profile(BaseModel):
    """A respondent's profile.

    ``canonical_phone`` is derived from ``phone`` and is the key for every
    persisted record of the respondent.
    """

    model_config = ConfigDict(from_attributes=True)

    first_name: str = Field(description="First name")
    last_name: str = Field(default="", description="Last name")
    phone: str = Field(description="Phone as entered")
    age: int = Field(default=0, description="Age in years")
    credential: str = Field(default="", description="Password as held by the store")
    interests: list[str] = Field(default_factory=list, description="Normalized interest labels")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def canonical_phone(self) -> str:
        return canonicalize(self.phone)


class RegisterRequest(BaseModel):
    """Schema for the registration form.

    Field rules are checked by the profile service so that every failing
    field is reported together.
    """

    first_name: str = Field(default="", max_length=255, description="First name")
    last_name: str = Field(default="", max_length=255, description="Last name")
    phone: str = Field(default="", max_length=64, description="Phone number")
    age: str = Field(default="", max_length=8, description="Age as typed")
    password: str = Field(default="", max_length=255, description="Password")
    confirm_password: str = Field(default="", max_length=255, description="Password confirmation")


class LoginRequest(BaseModel):
    """Schema for phone and password login."""

    phone: str = Field(..., min_length=1, max_length=64, description="Phone number")
    password: str = Field(..., min_length=1, max_length=255, description="Password")


class InterestRequest(BaseModel):
    """Schema for selecting or adding an interest."""

    label: str = Field(..., min_length=1, max_length=255, description="Interest label")


class ProfileResponse(BaseModel):
    """Schema for profile API responses. The credential is never returned."""

    model_config = ConfigDict(from_attributes=True)

    first_name: str
    last_name: str
    phone: str = Field(description="Canonical phone")
    display_phone: str = Field(description="Phone formatted for display")
    age: int
    interests: list[str]

    @classmethod
    def from_profile(cls, profile: Profile) -> "ProfileResponse":
        return cls(
            first_name=profile.first_name,
            last_name=profile.last_name,
            phone=profile.canonical_phone,
            display_phone=format_phone_display(profile.phone),
            age=profile.age,
            interests=list(profile.interests),
        )


class LoginResponse(BaseModel):
    """Schema for a successful login."""

    profile: ProfileResponse
    result: TypologyResult | None = Field(default=None, description="Stored result, if the quiz was finished")
    view: str = Field(description="View the flow moved to")
