from pydantic import BaseModel


class IPGeolocationData(BaseModel):
    """Normalized geolocation data returned by a geolocation backend.

    Every backend (local database or remote provider) maps its own payload into
    this shape; transports only ever see the ordered locality fields derived
    from it.
    """

    ip: str
    country: str
    country_name: str
    region: str | None = None
    city: str | None = None

    def locality_fields(self) -> list[str]:
        """Locality descriptors from the widest to the narrowest: country, region, city.

        Fields the backend did not return at all are skipped; empty strings are kept
        as returned.
        """
        return [value for value in (self.country_name, self.region, self.city) if value is not None]
