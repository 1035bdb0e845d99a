"""School (escuela) records."""
