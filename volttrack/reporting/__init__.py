"""Dashboard reporting projections."""
