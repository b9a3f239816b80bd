# fleet_telemetry_gateway/adapters/__init__.py

from fleet_telemetry_gateway.adapters.base import (
    AdapterContext,
    ProviderAdapter,
    probe_connection,
    require_credentials,
)
from fleet_telemetry_gateway.adapters.fleetgo import FleetGoAdapter
from fleet_telemetry_gateway.adapters.routevision import RouteVisionAdapter
from fleet_telemetry_gateway.adapters.samsara import SamsaraAdapter
from fleet_telemetry_gateway.adapters.trackjack import TrackJackAdapter
from fleet_telemetry_gateway.adapters.verizon import VerizonAdapter
from fleet_telemetry_gateway.adapters.webfleet import WebfleetAdapter

__all__: list[str] = [
    'AdapterContext',
    'FleetGoAdapter',
    'ProviderAdapter',
    'RouteVisionAdapter',
    'SamsaraAdapter',
    'TrackJackAdapter',
    'VerizonAdapter',
    'WebfleetAdapter',
    'probe_connection',
    'require_credentials',
]
