"""Feature slices of the order API."""
