# fleet_telemetry_gateway/models/trackjack_responses.py
"""
Pydantic response models for the TrackJack v1 API.

TrackJack is a Dutch SME product and its API uses Dutch field names
(kenteken = license plate, rit = trip, voertuig = vehicle). Identifiers are
integers on the wire and are read as strings. Field names are kept in Dutch
so they can be checked against the vendor documentation.

Glossary:
    afstand_km   distance in km        bestuurder   driver
    duur_minuten duration in minutes  handmatig    entered by hand
    rit_type     trip type            contact_aan  ignition on
    snelheid     speed (km/h)         richting     heading
    tijdstip     timestamp            adres        address
"""

from enum import Enum

from fleet_telemetry_gateway.models.shared_response_models import VendorModelBase

__all__: list[str] = [
    'TrackJackLocatie',
    'TrackJackRit',
    'TrackJackRitType',
    'TrackJackVoertuig',
]


class TrackJackRitType(str, Enum):
    """Trip classification."""

    ZAKELIJK = 'zakelijk'  # business
    PRIVE = 'prive'  # private
    WOON_WERK = 'woon_werk'  # commute


class TrackJackVoertuig(VendorModelBase):
    """Entry of GET /voertuigen."""

    id: str
    kenteken: str | None = None
    naam: str | None = None
    merk: str | None = None
    type: str | None = None
    actief: bool | None = None


class TrackJackRit(VendorModelBase):
    """Entry of GET /voertuigen/{id}/ritten."""

    id: str
    voertuig_id: str | None = None
    kenteken: str | None = None
    bestuurder: str | None = None
    start_tijd: str | None = None
    eind_tijd: str | None = None
    afstand_km: float | None = None
    duur_minuten: int | None = None
    start_adres: str | None = None
    start_lat: float | None = None
    start_lng: float | None = None
    eind_adres: str | None = None
    eind_lat: float | None = None
    eind_lng: float | None = None
    rit_type: str | None = None
    handmatig: bool | None = None


class TrackJackLocatie(VendorModelBase):
    """Entry of GET /voertuigen/locaties."""

    voertuig_id: str
    kenteken: str | None = None
    lat: float
    lng: float
    snelheid: float | None = None
    richting: float | None = None
    tijdstip: str | None = None
    adres: str | None = None
    contact_aan: bool | int | str | None = None
