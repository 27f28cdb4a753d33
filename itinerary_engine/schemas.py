from typing import List, Dict, Literal, Optional
from pydantic import BaseModel, Field, AliasChoices, ConfigDict

Bucket = Literal[
    "attraction", "food", "cafe", "shopping", "culture", "nightlife", "transport", "accommodation"
]
TransportMode = Literal["driving", "walking", "bicycle", "transit", "taxi"]
AccommodationType = Literal["hotel", "airbnb", "guesthouse", "resort", "other"]
PlaceSource = Literal["provider", "seed", "fallback", "user"]

# ------- Shared models -------
class Coordinate(BaseModel):
    lat: float
    lng: float

class PlaceCandidate(BaseModel):
    """Raw provider record; discarded once normalised into a RecommendedPlace."""
    id: str = ""
    name: str
    category: str = ""
    address: str = ""
    road_address: str = ""
    lng: float
    lat: float
    phone: str = ""
    rating: Optional[float] = None
    review_count: int = 0
    popularity: float = 0.0

class TravelSegment(BaseModel):
    distance_km: float
    duration_minutes: int
    cost: int = 0
    mode: TransportMode

class AccommodationInfo(BaseModel):
    event: Literal["check_in", "check_out"]
    root_name: str
    accommodation_type: AccommodationType = "hotel"
    address: str = ""
    booked: bool = False
    needs_manual_search: bool = False

class RecommendedPlace(BaseModel):
    id: str
    name: str
    bucket: Bucket = "attraction"
    category: str = ""
    address: str = ""
    lat: float
    lng: float
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    review_count: int = 0
    match_score: float = 0.0
    tags: List[str] = Field(default_factory=list)
    segment: Optional[TravelSegment] = None
    visit_minutes: int = 60
    accommodation: Optional[AccommodationInfo] = None
    source: PlaceSource = "provider"

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lng)

    @property
    def is_accommodation_event(self) -> bool:
        return self.accommodation is not None

DayItinerary = List[RecommendedPlace]
Itinerary = Dict[int, List[RecommendedPlace]]

# ------- Request models -------
class Dates(BaseModel):
    start: str
    end: str

class BookedAccommodation(BaseModel):
    name: str = ""
    address: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None

    @property
    def coordinate(self) -> Optional[Coordinate]:
        if self.lat is None or self.lng is None:
            return None
        return Coordinate(lat=self.lat, lng=self.lng)

class MustVisitPlace(BaseModel):
    name: str
    place_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("place_id", "placeId"))
    address: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None

class ItineraryRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    destination: str = Field(..., min_length=1)
    interests: List[str] = Field(default_factory=list)
    days: Optional[int] = Field(default=None, ge=1, le=30)
    dates: Optional[Dates] = None
    start_location: Optional[Coordinate] = Field(
        default=None, validation_alias=AliasChoices("start_location", "startLocation")
    )
    transport_mode: str = Field(
        default="driving", validation_alias=AliasChoices("transport_mode", "localTransport")
    )
    accommodation_type: str = Field(
        default="hotel", validation_alias=AliasChoices("accommodation_type", "accommodationType")
    )
    booked_accommodation: Optional[BookedAccommodation] = Field(
        default=None,
        validation_alias=AliasChoices("booked_accommodation", "accommodationLocation"),
    )
    must_visit: List[MustVisitPlace] = Field(
        default_factory=list, validation_alias=AliasChoices("must_visit", "mustVisitPlaces")
    )

class TransportValidationRequest(BaseModel):
    destination: str = Field(..., min_length=1)
    transport_type: Literal["airplane", "ktx", "train", "bus"]

# ------- Response models -------
class DaySummary(BaseModel):
    stops: int
    travel_minutes: int
    visit_minutes: int
    total_minutes: int
    distance_km: float
    cost: int
    travel_label: str
    cost_label: str

class ItineraryResponse(BaseModel):
    destination: str
    days: Dict[int, List[RecommendedPlace]] = Field(default_factory=dict)
    summaries: Dict[int, DaySummary] = Field(default_factory=dict)
    notes: List[str] = Field(default_factory=list)
    degraded: bool = False

class TransportFacility(BaseModel):
    name: str
    address: str = ""
    lat: float
    lng: float
    distance_km: Optional[float] = None

class TransportValidation(BaseModel):
    is_valid: bool
    facility: Optional[TransportFacility] = None
    alternatives: List[TransportFacility] = Field(default_factory=list)
    message: str
