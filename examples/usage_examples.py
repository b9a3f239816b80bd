#!/usr/bin/env python3
"""
Usage examples for fleet_telemetry_gateway.

This file shows the different ways to talk to a vendor, from a single
adapter up to the config-driven gateway and the trip DataFrame export.
"""

import asyncio
from datetime import UTC, datetime, timedelta

import pandas as pd

from fleet_telemetry_gateway import (
    FleetGateway,
    create_adapter,
    list_providers,
    trips_to_dataframe,
)
from fleet_telemetry_gateway.adapters import ProviderAdapter
from fleet_telemetry_gateway.exceptions import FleetGatewayError
from fleet_telemetry_gateway.models import ConnectionTestResult, TripBatch, Vehicle

# =============================================================================
# Level 1: Provider Catalog
# =============================================================================


def example_1_catalog() -> None:
    """List the supported vendors, popular ones first."""
    for info in list_providers():
        print(f'{info.display_name:<25} {info.auth_type.value:<12} {info.country.value}')


# =============================================================================
# Level 2: Single Adapter
# =============================================================================


async def example_2_single_adapter() -> None:
    """
    Use one adapter directly.

    Credentials are passed per call and never stored; the adapter caches
    only the resulting token.
    """
    routevision: ProviderAdapter = create_adapter('routevision')

    token: str = await routevision.authenticate(
        {'email': 'planner@example.nl', 'password': 'your-password-here'}
    )
    vehicles: list[Vehicle] = await routevision.get_vehicles(token)
    for vehicle in vehicles:
        print(f'{vehicle.registration}: {vehicle.brand or "?"} {vehicle.model or ""}')


# =============================================================================
# Level 3: Gateway (Recommended)
# =============================================================================


async def example_3_gateway() -> None:
    """
    Config-driven access with concurrent trip fetching.

    Failures of single vehicles end up in ``batch.errors`` instead of
    aborting the whole batch.
    """
    gateway: FleetGateway = FleetGateway.from_config('config/gateway_config.yaml')
    credentials: dict[str, str] = {'apiKey': 'your-samsara-token-here'}

    result: ConnectionTestResult = await gateway.test_connection('samsara', credentials)
    if not result.success:
        print(f'Connection failed: {result.error}')
        return
    print(f'Connected, {result.vehicle_count} vehicles visible')

    token: str = await gateway.authenticate('samsara', credentials)
    vehicles: list[Vehicle] = await gateway.adapter('samsara').get_vehicles(token)

    date_to: datetime = datetime.now(UTC)
    batch: TripBatch = await gateway.fetch_trips(
        'samsara',
        token,
        [vehicle.id for vehicle in vehicles],
        date_to - timedelta(days=7),
        date_to,
    )
    print(f'{batch.trip_count} trips, {len(batch.errors)} vehicles failed')

    # =========================================================================
    # Level 4: DataFrame Export
    # =========================================================================

    trips_df: pd.DataFrame = trips_to_dataframe(batch.trips)
    print(trips_df.groupby('registration')['distance_km'].sum())


# =============================================================================
# Main
# =============================================================================


def main() -> None:
    """Run the catalog example and the gateway example."""
    print('=' * 80)
    print('Fleet Telemetry Gateway - Usage Examples')
    print('=' * 80)

    example_1_catalog()

    print('\n--- Recommended Approach: Gateway ---\n')
    try:
        asyncio.run(example_3_gateway())
    except FileNotFoundError:
        print('Config file not found. Please create config/gateway_config.yaml')
    except FleetGatewayError as exc:
        print(f'Error: {exc}')


if __name__ == '__main__':
    main()
