"""
Outdoor Air - composite air quality and outdoor activity planning

Modules:
- outdoor_air: multi-provider AQI aggregation, confidence scoring,
  activity recommendations and grid-based spot finder (WAQI + IQAir)
"""
