"""
Google Places (v1) proxy for address autocomplete and place details.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import requests

REQUEST_TIMEOUT = 10  # seconds
PLACES_BASE_URL = "https://places.googleapis.com/v1"

AUTOCOMPLETE_PRIMARY_TYPES = [
    "street_address",
    "subpremise",
    "locality",
    "sublocality",
    "postal_code",
    "administrative_area_level_1",
    "administrative_area_level_2",
    "country",
    "premise",
    "neighborhood",
    "route",
    "point_of_interest",
]
DETAILS_FIELD_MASK = "id,formattedAddress,addressComponents,location"


@dataclass
class PlaceSuggestion:
    place_id: str
    description: str
    main_text: str
    secondary_text: str


@dataclass
class PlaceDetails:
    place_id: str
    formatted_address: str
    street: Optional[str]
    city: Optional[str]
    state: Optional[str]
    zip: Optional[str]
    country: Optional[str]
    lat: Optional[float]
    lng: Optional[float]


def _text(node: Optional[dict]) -> str:
    return (node or {}).get("text") or ""


@dataclass
class PlacesClient:
    api_key: Optional[str] = None

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict:
        return {"Content-Type": "application/json", "X-Goog-Api-Key": self.api_key}

    def autocomplete(self, input_text: str) -> list[PlaceSuggestion]:
        """
        Return address suggestions for partial user input.

        Disabled clients, blank input and non-2xx responses yield an empty
        list. Transport errors propagate as `requests.RequestException`.
        """
        if not self.enabled or not input_text.strip():
            return []
        response = requests.post(
            f"{PLACES_BASE_URL}/places:autocomplete",
            headers=self._headers(),
            json={
                "input": input_text.strip(),
                "includedPrimaryTypes": AUTOCOMPLETE_PRIMARY_TYPES,
            },
            timeout=REQUEST_TIMEOUT,
        )
        if not response.ok:
            return []

        suggestions = []
        for item in response.json().get("suggestions") or []:
            prediction = item.get("placePrediction")
            if not prediction:
                continue
            structured = prediction.get("structuredFormat") or {}
            suggestions.append(
                PlaceSuggestion(
                    place_id=prediction["placeId"],
                    description=_text(prediction.get("text")),
                    main_text=_text(structured.get("mainText")),
                    secondary_text=_text(structured.get("secondaryText")),
                )
            )
        return suggestions

    def get_place_details(self, place_id: str) -> Optional[PlaceDetails]:
        if not self.enabled or not place_id:
            return None
        response = requests.get(
            f"{PLACES_BASE_URL}/places/{quote(place_id, safe='')}",
            headers={**self._headers(), "X-Goog-FieldMask": DETAILS_FIELD_MASK},
            timeout=REQUEST_TIMEOUT,
        )
        if not response.ok:
            return None

        place = response.json()
        components = place.get("addressComponents") or []

        def find(kind: str) -> Optional[dict]:
            return next((c for c in components if kind in c.get("types", [])), None)

        def long_text(kind: str) -> Optional[str]:
            component = find(kind)
            return component.get("longText") if component else None

        street = " ".join(
            part for part in (long_text("street_number"), long_text("route")) if part
        )
        state = find("administrative_area_level_1")
        location = place.get("location") or {}
        return PlaceDetails(
            place_id=place_id,
            formatted_address=place.get("formattedAddress") or "",
            street=street or None,
            city=long_text("locality") or long_text("sublocality"),
            state=state.get("shortText") if state else None,
            zip=long_text("postal_code"),
            country=long_text("country"),
            lat=location.get("latitude"),
            lng=location.get("longitude"),
        )
