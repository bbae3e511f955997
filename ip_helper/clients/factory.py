from ip_helper.clients.base import BaseGeoLookup
from ip_helper.clients.ip_api_co_client import IpApiCo
from ip_helper.clients.ip_api_com_client import IpApiCom
from ip_helper.clients.maxmind_client import MaxMindCity
from ip_helper.config import Settings
from ip_helper.models.request_models import GeoProvider


class GeoLookupFactory:
    """Factory for geolocation backends.

    Given the settings, returns the concrete lookup selected by `geo_provider`.
    """

    def __call__(self, settings: Settings) -> BaseGeoLookup:
        if settings.geo_provider is GeoProvider.maxmind:
            return MaxMindCity(settings.geo_db_path, locale=settings.geo_locale)
        if settings.geo_provider is GeoProvider.ipapi_co:
            return IpApiCo()
        return IpApiCom()
