"""
Outdoor Air: multi-source AQI aggregation and outdoor spot finder.

Modules:
- config: provider credentials + engine/grid configuration
- models: coordinates, readings, composite results, ranked spots
- providers: WAQI + IQAir adapters (fetch + normalize)
- aggregation: concurrent fan-out, weighted composite AQI, confidence tier
- recommendations: activity advice by AQI band
- geo: haversine distance
- rate_limit: token bucket for sequential provider calls
- spots: grid sweep + spot scoring/ranking
- api: FastAPI endpoints
- cli: Typer commands
"""
