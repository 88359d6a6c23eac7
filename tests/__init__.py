"""
Outdoor Air Test Suite

Tests organized by module under tests/outdoor_air/:
- test_providers.py — WAQI / IQAir normalization and failure policy
- test_aggregation.py — weighted composite AQI, confidence, pollutant merge
- test_geo_recommendations.py — haversine + recommendation bands
- test_spots.py — grid sweep, spot scoring, token bucket
- test_api.py — HTTP endpoints
- test_config.py — configuration + credentials
- test_cli.py — CLI argument handling
"""
