"""Wakehub: wake and shut down registered machines behind JWT-authenticated accounts."""
