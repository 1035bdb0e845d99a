"""Case files (expedientes) and their linked teachers and schools."""
