"""VoltTrack MIS - transformer dispatch, commissioning and warranty tracking."""

__version__ = "1.0.0"
