"""Blueprints of the FlyAir API."""
