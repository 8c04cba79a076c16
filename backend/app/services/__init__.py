"""
Services package for business logic layer.
"""
from app.services.geocoding_client import GeocodingClient, GeocodingError
from app.services.geoip_client import GeoData, GeoIPClient
from app.services.route_service import RouteService, direct_route
from app.services.routing_client import RoutingClient, RoutingServiceError
from app.services.visit_service import InvalidEventError, VisitService

__all__ = [
    "GeocodingClient",
    "GeocodingError",
    "GeoData",
    "GeoIPClient",
    "RouteService",
    "direct_route",
    "RoutingClient",
    "RoutingServiceError",
    "InvalidEventError",
    "VisitService",
]
