# Data models shared by the proximity tracker, the narration dispatcher
# and the collaborators around them.

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

# --- Location & Content Models ---

class Position(BaseModel):
    """A single sample from the location source."""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., description="Latitude in decimal degrees.")
    longitude: float = Field(..., description="Longitude in decimal degrees.")
    accuracy: Optional[float] = Field(None, description="Horizontal accuracy in meters, if known.")
    timestamp: int = Field(..., description="Sample time in epoch milliseconds.")

class PointOfInterest(BaseModel):
    """A named location with a trigger radius and the text to narrate."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique, stable identifier.")
    name: str = Field(..., description="Display name.")
    latitude: float = Field(..., description="Latitude.")
    longitude: float = Field(..., description="Longitude.")
    radius: float = Field(..., description="Trigger radius in meters.")
    fact: str = Field(..., description="Narration text.")
    category: Optional[str] = Field(None, description="Free-form category label.")

class NextPOI(BaseModel):
    """Closest eligible POI and its distance from the current position."""
    model_config = ConfigDict(frozen=True)

    poi: PointOfInterest
    distance: float = Field(..., description="Distance in meters.")

# --- Narration Models ---

class NarrationOptions(BaseModel):
    """Optional voice hints; unset values fall back to configured defaults."""
    model_config = ConfigDict(frozen=True)

    language: Optional[str] = None
    pitch: Optional[float] = None
    rate: Optional[float] = None

class NarrationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    options: NarrationOptions = Field(default_factory=NarrationOptions)

class ResolvedSpeech(BaseModel):
    """The concrete voice parameters handed to a narration backend for one attempt."""
    model_config = ConfigDict(frozen=True)

    language: str
    pitch: float
    rate: float
