"""Teacher (docente) records."""
