"""Airspace service - FastAPI surface over the airspace tile core."""
