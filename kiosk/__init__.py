"""Attendance kiosk: face-signature similarity index and clock-in/out service."""
