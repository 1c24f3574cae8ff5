"""HTTP surface for the attendance kiosk."""
